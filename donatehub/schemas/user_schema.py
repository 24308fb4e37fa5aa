from marshmallow import fields, validate

from donatehub.extensions import ma
from donatehub.utils.roles import capabilities_for


class UserInfoSchema(ma.Schema):
    id = fields.Integer()
    first_name = fields.String()
    username = fields.String()
    channel_name = fields.String()
    channel_url = fields.String()
    profile_img_url = fields.String()
    banner_img_url = fields.String()
    description = fields.String()
    online = fields.Boolean()
    enable = fields.Boolean()
    role = fields.String()
    last_online_at = fields.DateTime()
    created_at = fields.DateTime()


class UserInfoForDonateSchema(ma.Schema):
    """Public view rendered on a streamer's donation page."""
    id = fields.Integer()
    first_name = fields.String()
    channel_name = fields.String()
    channel_url = fields.String()
    profile_img_url = fields.String()
    banner_img_url = fields.String()
    description = fields.String()
    online = fields.Boolean()
    min_donation_amount = fields.Float(allow_none=True)


class UserProfileSchema(ma.Schema):
    id = fields.Integer()
    first_name = fields.String()
    username = fields.String()
    description = fields.String()
    channel_url = fields.String()
    channel_name = fields.String()
    profile_img_url = fields.String()
    banner_img_url = fields.String()
    online = fields.Boolean()
    enable = fields.Boolean()
    role = fields.String()
    api = fields.String()
    min_donation_amount = fields.Float(allow_none=True)
    balance = fields.Float()
    capabilities = fields.Method("get_capabilities")

    def get_capabilities(self, user):
        return sorted(capabilities_for(user.role))


class UserUpdateSchema(ma.Schema):
    channel_name = fields.String(validate=validate.Length(min=2, max=255))
    channel_url = fields.String(validate=validate.Length(max=1024))
    description = fields.String(validate=validate.Length(max=5000))
    min_donation_amount = fields.Decimal(places=2, allow_none=True, validate=validate.Range(min=0))


class StatisticPointSchema(ma.Schema):
    day = fields.Date()
    count = fields.Integer()
