"""
Request payload schemas
"""

from marshmallow import (
    EXCLUDE, Schema, ValidationError, fields, pre_load, validate, validates, validates_schema
)

from letterportal.utils.validators import validate_phone_number
from letterportal.utils.workflow import STATUS_VALUES


class BaseSchema(Schema):
    # Free-form text whose layout whitespace is kept
    unstripped_fields = ()

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def strip_strings(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        return {
            key: value.strip() if isinstance(value, str) and key not in self.unstripped_fields else value
            for key, value in data.items()
        }


class StudentFieldsMixin:
    name = fields.String(required=True, validate=validate.Length(min=3, max=100))
    student_id = fields.String(required=True, validate=validate.Length(min=5, max=20))
    program = fields.String(required=True, validate=validate.Length(min=3, max=100))
    email = fields.Email(required=True)
    phone = fields.String(required=True, validate=validate.Length(min=10, max=15))

    @validates('phone')
    def check_phone(self, value, **kwargs):
        if not validate_phone_number(value):
            raise ValidationError("Invalid phone number")


class SubmissionSchema(StudentFieldsMixin, BaseSchema):
    """Student letter request form"""
    letter_type_id = fields.Integer(required=True, strict=False)
    purpose = fields.String(required=True, validate=validate.Length(min=10, max=1000))


class StudentSchema(StudentFieldsMixin, BaseSchema):
    """Admin student record form"""


class StudentRegistrationSchema(StudentFieldsMixin, BaseSchema):
    password = fields.String(required=True, validate=validate.Length(min=6))
    confirm_password = fields.String(required=True)

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get('password') != data.get('confirm_password'):
            raise ValidationError("Passwords do not match", 'confirm_password')


class AdminRegistrationSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=3, max=100))
    email = fields.Email(required=True)
    password = fields.String(required=True, validate=validate.Length(min=6))
    confirm_password = fields.String(required=True)

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get('password') != data.get('confirm_password'):
            raise ValidationError("Passwords do not match", 'confirm_password')


class LetterTypeSchema(BaseSchema):
    unstripped_fields = ('body_template',)

    code = fields.String(required=True, validate=validate.Length(min=1, max=30))
    name = fields.String(required=True, validate=validate.Length(min=1, max=200))
    description = fields.String(allow_none=True, load_default=None)
    addressee = fields.String(allow_none=True, load_default=None, validate=validate.Length(max=255))
    body_template = fields.String(allow_none=True, load_default=None)
    is_active = fields.Boolean(load_default=True)


class StudyProgramSchema(BaseSchema):
    code = fields.String(required=True, validate=validate.Length(min=1, max=30))
    name = fields.String(required=True, validate=validate.Length(min=1, max=200))
    faculty = fields.String(allow_none=True, load_default=None)
    is_active = fields.Boolean(load_default=True)


class StatusUpdateSchema(BaseSchema):
    status = fields.String(required=True, validate=validate.OneOf(STATUS_VALUES))
    admin_notes = fields.String(allow_none=True, load_default=None)


class ProfileSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=3, max=100))
    email = fields.Email(required=True)
