from wtforms import SelectField

from scout_toolkit.core.constants import ROLES
from scout_toolkit.core.forms import FormularioJSON


class RoleForm(FormularioJSON):
    role = SelectField('Role', choices=[(r, r) for r in ROLES])
