from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional, Regexp, URL


class HomeForm(FlaskForm):
    appName = StringField('Nome da Aplicação', validators=[DataRequired(), Length(max=80)])
    title = StringField('Título', validators=[DataRequired(), Length(max=150)])
    subtitle = StringField('Subtítulo', validators=[Length(max=250)])
    description = TextAreaField('Descrição', validators=[Length(max=2000)])
    footerText = StringField('Rodapé', validators=[Length(max=250)])
    logoUrl = StringField('URL do Logo', validators=[Optional(), URL(message="URL inválida.")])
    facebookUrl = StringField('Facebook', validators=[Length(max=300)])
    instagramUrl = StringField('Instagram', validators=[Length(max=300)])
    twitterUrl = StringField('Twitter', validators=[Length(max=300)])
    primaryColor = StringField('Cor Primária', validators=[
        Optional(),
        Regexp(r'^#[0-9A-Fa-f]{6}$', message="Use o formato #RRGGBB"),
    ])


class ImportacaoForm(FlaskForm):
    # Texto JSON colado pelo administrador (lista de escolas ou profissionais)
    conteudo = TextAreaField('Dados (JSON)', validators=[DataRequired(message="Cole uma lista JSON.")])


class FormularioConfigForm(FlaskForm):
    conteudo = TextAreaField('Configuração do Formulário (JSON)', validators=[DataRequired()])
