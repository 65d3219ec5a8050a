# Settings service module: global key/value configuration stored in system_settings
import logging
from flask import current_app
from agrilink import db
from agrilink.errors import ValidationError
from agrilink.models.setting_model import SystemSetting
from agrilink.utils.util import parse_number

logger = logging.getLogger(__name__)

SERVICE_FEE_KEY = 'service_fee_percentage'

SETTING_DESCRIPTIONS = {
    SERVICE_FEE_KEY: 'Platform service fee (%) added to new and updated product prices',
}


def get_service_fee_percentage():
    """Current global fee rate; read once per product write and passed on explicitly."""
    setting = SystemSetting.query.filter_by(setting_key=SERVICE_FEE_KEY).first()
    default = current_app.config.get('DEFAULT_SERVICE_FEE_PERCENTAGE', 10.0)
    if setting is None:
        return default
    try:
        return float(setting.setting_value)
    except ValueError:
        logger.error(f'Invalid {SERVICE_FEE_KEY} setting {setting.setting_value!r}, using {default}')
        return default


def get_all_settings():
    return {s.setting_key: s.setting_value for s in SystemSetting.query.order_by(SystemSetting.setting_key).all()}


def _normalize(key, value):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError('Please provide a value')
    if key == SERVICE_FEE_KEY:
        return f'{parse_number(value, key, minimum=0, maximum=100):.2f}'
    return str(value).strip()


def update_setting(key, value):
    setting_value = _normalize(key, value)
    setting = SystemSetting.query.filter_by(setting_key=key).first()
    if setting is None:
        setting = SystemSetting(setting_key=key, description=SETTING_DESCRIPTIONS.get(key))
        db.session.add(setting)
    setting.setting_value = setting_value
    db.session.commit()
    logger.info(f'Setting {key} updated to {setting_value}')
    return setting


def seed_default_settings():
    if SystemSetting.query.filter_by(setting_key=SERVICE_FEE_KEY).first() is None:
        db.session.add(SystemSetting(
            setting_key=SERVICE_FEE_KEY,
            setting_value=f"{current_app.config.get('DEFAULT_SERVICE_FEE_PERCENTAGE', 10.0):.2f}",
            description=SETTING_DESCRIPTIONS[SERVICE_FEE_KEY],
        ))
        db.session.commit()
