from wtforms import BooleanField, DateField, IntegerField, StringField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional
from wtforms.validators import ValidationError as CampoInvalido

from scout_toolkit.core.errors import ValidationError
from scout_toolkit.core.forms import FormularioJSON
from .agenda import formatar_hora, ler_hora


class ProgramaForm(FormularioJSON):
    nome = StringField('Nome', validators=[DataRequired(), Length(max=200)])
    data = DateField('Data', format='%Y-%m-%d', validators=[Optional()])
    hora_inicio = StringField('Hora de início', validators=[DataRequired()])
    publico = BooleanField('Público')

    def validate_hora_inicio(self, field):
        try:
            ler_hora(field.data)
        except ValidationError:
            raise CampoInvalido('Formato HH:MM (00:00 a 23:59).')

    def para_dict(self) -> dict:
        return {
            'nome': self.nome.data.strip(),
            'data': self.data.data.isoformat() if self.data.data else None,
            'hora_inicio': formatar_hora(ler_hora(self.hora_inicio.data)),
            'publico': bool(self.publico.data),
        }


class AdicionarAtividadeForm(FormularioJSON):
    atividade_id = StringField('Atividade', validators=[DataRequired()])


class BlocoPersonalizadoForm(FormularioJSON):
    titulo = StringField('Título', validators=[DataRequired(), Length(max=200)])
    duracao_minutos = IntegerField('Duração', validators=[InputRequired(), NumberRange(min=1, max=1440)])


class MoverForm(FormularioJSON):
    de = IntegerField('De', validators=[InputRequired(), NumberRange(min=0)])
    para = IntegerField('Para', validators=[InputRequired(), NumberRange(min=0)])
