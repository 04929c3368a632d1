from flask_wtf import FlaskForm
from wtforms import HiddenField, SelectField, SelectMultipleField, StringField, widgets
from wtforms.validators import DataRequired, Length, Optional, Regexp

from censo.core.constants import PERMISSOES


class MultiCheckboxField(SelectMultipleField):
    widget = widgets.ListWidget(prefix_label=False)
    option_widget = widgets.CheckboxInput()


class UsuarioForm(FlaskForm):
    id = HiddenField()
    name = StringField('Nome', validators=[DataRequired(message="O nome é obrigatório."), Length(max=120)])
    # Obrigatório só na criação (validado no serviço)
    email = StringField('E-mail', validators=[Optional(), Regexp(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", message="E-mail inválido.")])
    roleId = SelectField('Perfil', validators=[DataRequired(message="Selecione um perfil.")])
    schoolId = SelectField('Escola', validators=[Optional()])
    status = SelectField('Status', choices=[('active', 'Ativo'), ('inactive', 'Inativo')], default='active')


class PerfilForm(FlaskForm):
    id = HiddenField()
    name = StringField('Nome do Perfil', validators=[DataRequired(message="O nome do perfil é obrigatório.")])
    permissions = MultiCheckboxField('Permissões', choices=list(PERMISSOES.items()))
