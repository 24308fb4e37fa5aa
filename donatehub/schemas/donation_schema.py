from marshmallow import fields, validate

from donatehub.extensions import ma
from donatehub.utils.constants import PaymentMethod


class DonationCreateSchema(ma.Schema):
    donor_name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    amount = fields.Decimal(required=True, places=2)
    method = fields.String(required=True, validate=validate.OneOf(PaymentMethod.ALL))
    message = fields.String(allow_none=True, validate=validate.Length(max=500))


class DonationInfoSchema(ma.Schema):
    id = fields.Integer()
    donor_name = fields.String()
    message = fields.String()
    amount = fields.Float()
    streamer_id = fields.Integer()
    method = fields.String()
    status = fields.String()
    created_at = fields.DateTime()
    completed_at = fields.DateTime()


class CreateDonateSchema(ma.Schema):
    id = fields.Integer()
    external_ref = fields.String()
    amount = fields.Float()
    method = fields.String()
    status = fields.String()
    payment_url = fields.String()


class DonationStatisticSchema(ma.Schema):
    day = fields.Date()
    amount = fields.Float()
    count = fields.Integer()
