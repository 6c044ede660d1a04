from flask_babel import lazy_gettext as _l
from flask_wtf import FlaskForm
from wtforms import StringField, SubmitField
from wtforms.validators import DataRequired, Length

class BrandForm(FlaskForm):
    name = StringField(_l('Brand name'), validators=[DataRequired(), Length(max=64)])
    submit = SubmitField(_l('Save'))
