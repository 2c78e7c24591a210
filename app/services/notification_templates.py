"""pt-BR WhatsApp message templates, one per notification kind."""

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from app.schemas.notifications import NotificationKind, TemplateData

DEFAULT_CLINIC_NAME = "Clínica Médica"
DEFAULT_DOCTOR_NAME = "Dr(a)."

# Indexed by date.weekday(), Monday first
DAY_NAMES = (
    "Segunda-feira",
    "Terça-feira",
    "Quarta-feira",
    "Quinta-feira",
    "Sexta-feira",
    "Sábado",
    "Domingo",
)


def format_brazilian_date(instant: datetime, timezone: ZoneInfo) -> str:
    """
    Format an instant as clinic-local pt-BR text.

    Example:
        ``Sábado, 15/02/2025 às 09:00``
    """
    local = instant.astimezone(timezone)
    return f"{DAY_NAMES[local.weekday()]}, {local:%d/%m/%Y} às {local:%H:%M}"


def render_reminder_72h(data: TemplateData) -> str:
    return (
        f"Olá, {data.patient_name}! 👋\n\n"
        f"Lembramos que você tem uma consulta agendada para {data.appointment_date}.\n\n"
        f"📍 Local: {data.clinic_name or DEFAULT_CLINIC_NAME}\n"
        f"👨‍⚕️ Profissional: {data.doctor_name or DEFAULT_DOCTOR_NAME}\n\n"
        "Por favor, confirme sua presença respondendo esta mensagem.\n\n"
        "⚠️ Lembre-se: cancelamentos devem ser feitos com pelo menos 12 horas de "
        "antecedência.\n\n"
        "Aguardamos você! 🏥"
    )


def render_reminder_48h(data: TemplateData) -> str:
    return (
        f"Olá, {data.patient_name}! 👋\n\n"
        f"Este é um lembrete de que você tem uma consulta agendada para "
        f"{data.appointment_date}.\n\n"
        f"📍 Local: {data.clinic_name or DEFAULT_CLINIC_NAME}\n"
        f"👨‍⚕️ Profissional: {data.doctor_name or DEFAULT_DOCTOR_NAME}\n\n"
        "⚠️ *Política de Cancelamento*\n"
        "Caso precise cancelar, por favor nos informe com pelo menos 12 horas de "
        "antecedência.\n\n"
        "Para cancelar ou reagendar, responda esta mensagem ou entre em contato conosco.\n\n"
        "Até breve! 🏥"
    )


def render_confirmation(data: TemplateData) -> str:
    return (
        "✅ *Consulta Confirmada*\n\n"
        f"Olá, {data.patient_name}!\n\n"
        f"Sua consulta foi agendada com sucesso para {data.appointment_date}.\n\n"
        f"📍 Local: {data.clinic_name or DEFAULT_CLINIC_NAME}\n"
        f"👨‍⚕️ Profissional: {data.doctor_name or DEFAULT_DOCTOR_NAME}\n\n"
        "⚠️ *Importante*\n"
        "- Chegue com 15 minutos de antecedência\n"
        "- Traga um documento de identificação\n"
        "- Cancelamentos devem ser feitos com pelo menos 12 horas de antecedência\n\n"
        "Até breve! 🏥"
    )


def render_cancellation(data: TemplateData) -> str:
    reason = f"\n\n*Motivo:* {data.reason}" if data.reason else ""
    return (
        "❌ *Consulta Cancelada*\n\n"
        f"Olá, {data.patient_name},\n\n"
        f"Sua consulta agendada para {data.appointment_date} foi cancelada.{reason}\n\n"
        "🔄 *Deseja reagendar?*\n"
        "Responda esta mensagem para marcar uma nova data.\n\n"
        "Esperamos vê-lo em breve! 🏥"
    )


def render_doctor_alert(data: TemplateData) -> str:
    return (
        "🚨 *ALERTA URGENTE*\n\n"
        f"*Paciente:* {data.patient_name}\n"
        f"*Data:* {data.appointment_date}\n\n"
        "*Motivo do Alerta:*\n"
        f"{data.escalation_reason or 'Mensagem urgente do paciente'}\n\n"
        "⚠️ *AÇÃO NECESSÁRIA*\n"
        "Este alerta requer atenção da equipe médica.\n\n"
        "Enviado automaticamente pelo sistema de agendamento."
    )


TEMPLATES: dict[NotificationKind, Callable[[TemplateData], str]] = {
    NotificationKind.REMINDER_72H: render_reminder_72h,
    NotificationKind.REMINDER_48H: render_reminder_48h,
    NotificationKind.CONFIRMATION: render_confirmation,
    NotificationKind.CANCELLATION: render_cancellation,
    NotificationKind.DOCTOR_ALERT: render_doctor_alert,
}


def render(kind: NotificationKind, data: TemplateData) -> str:
    """Render the message body for a notification kind."""
    return TEMPLATES[kind](data)
