from flask_babel import lazy_gettext as _l
from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, SubmitField
from wtforms.validators import Length

# Required-field and price checks are done by ProductFormController so that
# every failure ends up in the screen's transient message.
class ProductForm(FlaskForm):
    name = StringField(_l('Name'), validators=[Length(max=128)])
    brand = SelectField(_l('Brand'), validate_choice=False)
    price = StringField(_l('Price (R$)'), validators=[Length(max=32)])
    unit = StringField(_l('Unit'), validators=[Length(max=16)])
    submit = SubmitField(_l('Save'))

class ConfirmDeleteForm(FlaskForm):
    confirm = SubmitField(_l('Yes'))
    cancel = SubmitField(_l('No'))
