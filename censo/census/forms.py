from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    FieldList,
    FormField,
    HiddenField,
    IntegerField,
    SelectField,
    StringField,
    TextAreaField,
)
from wtforms.validators import DataRequired, Length, NumberRange, Optional, ValidationError

from censo.core.constants import OCUPACAO_INTEGRAL, OCUPACAO_TURNOS, TECNOLOGIAS, TIPOS_CARTEIRA, TIPOS_CONTRATO, TURNOS

CONTADOR = [Optional(), NumberRange(min=0, message="Informe um número inteiro não negativo.")]

OPCOES_CONTRATO = [('', 'Selecione...')] + [(t, t) for t in TIPOS_CONTRATO]
OPCOES_TURNO = [(chave, rotulo) for chave, rotulo in TURNOS.items()]


class SubForm(FlaskForm):
    class Meta:
        csrf = False  # O CSRF é tratado no form pai


class ProfessorForm(SubForm):
    """Alocação atual de um professor na turma."""
    professionalId = StringField('Profissional')
    contractType = SelectField('Tipo de Contrato', choices=OPCOES_CONTRATO, validators=[Optional()])
    workload = IntegerField('Carga Horária', validators=CONTADOR)
    observations = StringField('Observações', validators=[Length(max=500)])


class Professor2026Form(SubForm):
    """Alocação projetada para 2026."""
    professionalId = StringField('Profissional')
    matricula = StringField('Matrícula', validators=[Length(max=50)])
    classroomName = StringField('Turma')
    turn = SelectField('Turno', choices=[('', 'Selecione...')] + OPCOES_TURNO, validators=[Optional()])
    contractType = SelectField('Tipo de Contrato', choices=OPCOES_CONTRATO, validators=[Optional()])
    workload = IntegerField('Carga Horária', validators=CONTADOR)
    situation = StringField('Situação', validators=[Length(max=100)])
    annotations = StringField('Anotações', validators=[Length(max=500)])


class AlocacaoForm(SubForm):
    classroomId = HiddenField('Sala')
    classroomName = StringField('Sala')
    turn = SelectField('Turno', choices=OPCOES_TURNO)
    grade = StringField('Série')
    teachers = FieldList(FormField(ProfessorForm), min_entries=0)
    teachers2026 = FieldList(FormField(Professor2026Form), min_entries=0)


class SalaForm(SubForm):
    id = HiddenField()
    name = StringField('Nome da Sala', validators=[DataRequired(message="O nome da sala é obrigatório.")])
    studentCapacity = IntegerField('Capacidade de Alunos', validators=CONTADOR)
    outlets = IntegerField('Tomadas', validators=CONTADOR)
    tvCount = IntegerField('TVs', validators=CONTADOR)
    chairCount = IntegerField('Cadeiras', validators=CONTADOR)
    fanCount = IntegerField('Ventiladores', validators=CONTADOR)
    hasInternet = BooleanField('Internet')
    hasAirConditioning = BooleanField('Ar-condicionado')
    deskType = SelectField('Tipo de Carteira', choices=[('', 'Selecione...')] + [(t, t) for t in TIPOS_CARTEIRA],
                           validators=[Optional()])
    occupationType = SelectField('Ocupação', default=OCUPACAO_TURNOS, choices=[
        (OCUPACAO_TURNOS, 'Por turnos'),
        (OCUPACAO_INTEGRAL, 'Integral'),
    ])

    gradeMorning = StringField('Série (Manhã)')
    studentsMorning = IntegerField('Alunos (Manhã)', validators=CONTADOR)
    gradeProjection2026Morning = StringField('Projeção 2026 (Manhã)')
    gradeAfternoon = StringField('Série (Tarde)')
    studentsAfternoon = IntegerField('Alunos (Tarde)', validators=CONTADOR)
    gradeProjection2026Afternoon = StringField('Projeção 2026 (Tarde)')
    gradeNight = StringField('Série (Noite)')
    studentsNight = IntegerField('Alunos (Noite)', validators=CONTADOR)
    gradeProjection2026Night = StringField('Projeção 2026 (Noite)')
    gradeIntegral = StringField('Série (Integral)')
    studentsIntegral = IntegerField('Alunos (Integral)', validators=CONTADOR)
    gradeProjection2026Integral = StringField('Projeção 2026 (Integral)')

    observations = TextAreaField('Observações', validators=[Length(max=1000)])

    def validate_occupationType(self, field):
        turnos = [self.gradeMorning.data, self.gradeAfternoon.data, self.gradeNight.data]
        if field.data == OCUPACAO_INTEGRAL and any((s or '').strip() for s in turnos):
            raise ValidationError("Sala integral não pode ter séries por turno.")
        if field.data == OCUPACAO_TURNOS and (self.gradeIntegral.data or '').strip():
            raise ValidationError("Sala por turnos não pode ter série integral.")


class ModalidadeForm(SubForm):
    name = StringField('Modalidade', validators=[DataRequired(message="O nome da modalidade é obrigatório.")])
    offered = BooleanField('Ofertada', default=True)
    studentCount = IntegerField('Alunos', validators=CONTADOR)


class TecnologiaForm(SubForm):
    name = HiddenField()
    ativo = BooleanField('Possui')
    quantity = IntegerField('Quantidade', validators=CONTADOR)


class CensusForm(FlaskForm):
    schoolId = SelectField('Escola', validators=[DataRequired(message="Por favor, selecione uma escola.")])
    # min_entries garante ao menos uma sala e uma modalidade mesmo se o POST vier sem nenhuma
    classrooms = FieldList(FormField(SalaForm), min_entries=1)
    teachingModalities = FieldList(FormField(ModalidadeForm), min_entries=1)
    technologies = FieldList(FormField(TecnologiaForm), min_entries=0,
                             default=lambda: [{'name': nome} for nome in TECNOLOGIAS])
    hasInternetAccess = BooleanField('Acesso à internet pedagógica')
    allocations = FieldList(FormField(AlocacaoForm), min_entries=0)
