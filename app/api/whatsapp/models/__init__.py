from app.api.whatsapp.models.model_instance import InstanceStatus, WhatsAppInstanceModel
from app.api.whatsapp.models.model_contact import WhatsAppContactModel
from app.api.whatsapp.models.model_message import MessageStatus, WhatsAppMessageModel
from app.api.whatsapp.models.model_instance_settings import WhatsAppInstanceSettingsModel
from app.api.whatsapp.models.model_quick_message import WhatsAppQuickMessageModel
from app.api.whatsapp.models.model_webhook_failure import WebhookFailureModel
from app.api.whatsapp.models.model_auto_reply_log import WhatsAppAutoReplyLogModel

__all__ = [
    "InstanceStatus",
    "WhatsAppInstanceModel",
    "WhatsAppContactModel",
    "MessageStatus",
    "WhatsAppMessageModel",
    "WhatsAppInstanceSettingsModel",
    "WhatsAppQuickMessageModel",
    "WebhookFailureModel",
    "WhatsAppAutoReplyLogModel",
]
