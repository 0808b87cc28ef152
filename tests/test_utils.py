from datetime import datetime

import pytest

from app.utils.disponibilidade import esta_dentro_do_horario, proximo_horario_disponivel, validar_schedule
from app.utils.security import (
    compute_webhook_signature,
    sanitize_text_content,
    validate_message_content,
    validate_quick_message_shortcut,
    validate_webhook_signature,
)
from app.utils.telefone import normalize_phone_number, phone_from_jid, phone_variants_for_search


# ───────────────────────────
# Telefone
# ───────────────────────────

@pytest.mark.parametrize("raw, expected", [
    ("(11) 98888-7777", "5511988887777"),
    ("11 3333.4444", "551133334444"),
    ("5511988887777", "5511988887777"),
    ("+1 415 555 0100", "14155550100"),
    ("0055 11 98888 7777", "5511988887777"),
    ("", None),
    (None, None),
    ("abc", None),
    ("0123", None),
])
def test_normalize_phone_number(raw, expected):
    assert normalize_phone_number(raw) == expected


def test_phone_variants_for_search():
    assert phone_variants_for_search("5511988887777") == [
        "5511988887777", "551188887777", "11988887777", "1188887777",
    ]
    assert phone_variants_for_search("1133334444") == [
        "551133334444", "5511933334444", "1133334444", "11933334444",
    ]
    assert phone_variants_for_search("xx") == []


def test_phone_from_jid():
    assert phone_from_jid("5511988887777@s.whatsapp.net") == "5511988887777"
    assert phone_from_jid(None) == ""


# ───────────────────────────
# Segurança
# ───────────────────────────

def test_sanitize_text_content():
    assert sanitize_text_content("  Olá\x00 <script>alert(1)</script>mundo ") == "Olá mundo"
    assert sanitize_text_content("clique javascript:alert(1)") == "clique alert(1)"
    assert sanitize_text_content("linha 1\nlinha 2\tok") == "linha 1\nlinha 2\tok"
    assert sanitize_text_content(None) == ""
    assert len(sanitize_text_content("a" * 5000)) == 4096


def test_validate_message_content():
    result = validate_message_content("  Olá  ")
    assert result.is_valid
    assert result.sanitized_content == "Olá"

    result = validate_message_content("<iframe src=x></iframe>")
    assert not result.is_valid
    assert result.errors == ["Mensagem não pode ser vazia"]

    assert not validate_message_content("a" * 4097).is_valid
    assert validate_message_content(None, "audio").is_valid


def test_validate_quick_message_shortcut():
    assert validate_quick_message_shortcut("/ola")
    assert validate_quick_message_shortcut("/horario_2")
    assert not validate_quick_message_shortcut("ola")
    assert not validate_quick_message_shortcut("/")
    assert not validate_quick_message_shortcut("/olá")
    assert not validate_quick_message_shortcut(None)


def test_webhook_signature():
    body = b'{"event":"messages.upsert"}'
    signature = compute_webhook_signature(body, "segredo")

    assert validate_webhook_signature(body, signature, "segredo")
    assert validate_webhook_signature(body, f"sha256={signature}", "segredo")
    assert validate_webhook_signature(body, signature.upper(), "segredo")
    assert not validate_webhook_signature(body + b" ", signature, "segredo")
    assert not validate_webhook_signature(body, signature, "outro")
    assert not validate_webhook_signature(body, None, "segredo")
    assert not validate_webhook_signature(body, "não-ascii-ç", "segredo")


# ───────────────────────────
# Horário de atendimento
# ───────────────────────────

SCHEDULE = {
    "monday": {"enabled": True, "start": "08:00", "end": "18:00"},
    "tuesday": {"enabled": True, "start": "22:00", "end": "06:00"},
    "saturday": {"enabled": False, "start": "08:00", "end": "12:00"},
}


def test_esta_dentro_do_horario():
    # 2024-05-06 é segunda-feira
    assert esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 6, 8, 0), timezone=None)
    assert esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 6, 18, 0, 59), timezone=None)
    assert not esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 6, 18, 1), timezone=None)
    assert not esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 11, 9, 0), timezone=None)
    assert not esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 12, 9, 0), timezone=None)
    assert not esta_dentro_do_horario(None, now=datetime(2024, 5, 6, 9, 0), timezone=None)


def test_esta_dentro_do_horario_overnight_and_timezone():
    assert esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 7, 23, 30), timezone=None)
    assert esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 7, 5, 0), timezone=None)
    assert not esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 7, 12, 0), timezone=None)

    # 10:00 UTC de segunda = 07:00 em São Paulo (antes do expediente)
    assert not esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 6, 10, 0), timezone="America/Sao_Paulo")
    assert esta_dentro_do_horario(SCHEDULE, now=datetime(2024, 5, 6, 12, 0), timezone="America/Sao_Paulo")


def test_proximo_horario_disponivel():
    # sábado desabilitado: próximo expediente é segunda 08:00
    proximo = proximo_horario_disponivel(SCHEDULE, now=datetime(2024, 5, 11, 9, 0), timezone=None)
    assert proximo == datetime(2024, 5, 13, 8, 0)
    assert proximo_horario_disponivel({}, now=datetime(2024, 5, 11, 9, 0), timezone=None) is None


def test_validar_schedule():
    assert validar_schedule(SCHEDULE) is None
    assert validar_schedule({"monday": {"enabled": True, "start": "8:00", "end": "18:00"}})
    assert validar_schedule({"domingo": {"enabled": True, "start": "08:00", "end": "18:00"}})
    assert validar_schedule([]) == "availability_schedule deve ser um objeto"
