from marshmallow import fields

from donatehub.extensions import ma


class WithdrawInfoSchema(ma.Schema):
    id = fields.Integer()
    streamer_id = fields.Integer()
    amount = fields.Float()
    card_number = fields.String()
    status = fields.String()
    created_at = fields.DateTime()
    processed_at = fields.DateTime()
