from flask_babel import lazy_gettext as _l
from flask_wtf import FlaskForm
from wtforms import StringField, SubmitField
from wtforms.validators import Length

class StoreForm(FlaskForm):
    store_name = StringField(_l('Store name'), validators=[Length(max=128)])
    postal_code = StringField(_l('CEP (numbers only)'))
    submit = SubmitField(_l('Register'))
