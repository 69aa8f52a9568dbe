"""
Base dos formulários WTForms para pedidos JSON.

Os formulários não geram token próprio: o CSRF é tratado globalmente
pelo CSRFProtect (cabeçalho X-CSRFToken).
"""

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict

from .errors import ValidationError


def json_para_formdata(payload: dict) -> MultiDict:
    """
    Converte o corpo JSON no formato que o WTForms espera.

    Valores nulos são omitidos, booleanos falsos viram '' (valor falso do
    BooleanField) e números passam a texto para os IntegerField.
    """
    itens = []
    for chave, valor in payload.items():
        if valor is None:
            continue
        if isinstance(valor, bool):
            itens.append((chave, 'y' if valor else ''))
        elif isinstance(valor, (list, tuple)):
            itens.extend((chave, str(v)) for v in valor)
        else:
            itens.append((chave, str(valor)))
    return MultiDict(itens)


class FormularioJSON(FlaskForm):
    class Meta:
        csrf = False

    @classmethod
    def do_pedido(cls):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("O corpo do pedido deve ser um objeto JSON.")
        return cls(formdata=json_para_formdata(payload))

    def validar(self):
        """Valida e lança ValidationError com o primeiro campo inválido."""
        if not self.validate():
            campo, erros = next(iter(self.errors.items()))
            raise ValidationError(f"{campo}: {'; '.join(str(e) for e in erros)}", campo=campo)
        return self
