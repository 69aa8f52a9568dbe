from wtforms import IntegerField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from scout_toolkit.core.forms import FormularioJSON


class AvaliacaoForm(FormularioJSON):
    nota = IntegerField('Nota', validators=[DataRequired(), NumberRange(min=1, max=5)])
    comentario = StringField('Comentário', validators=[Optional(), Length(max=1000)])
