import re
from typing import List, Optional

_E164_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
_MASK_RE = re.compile(r"[\s\-().]")


def normalize_phone_number(telefone: Optional[str]) -> Optional[str]:
    """
    Normaliza o telefone para o formato de armazenamento (somente dígitos, com país).

    Regras:
    - Remove máscara: espaços, parênteses, hífen e ponto.
    - Prefixo internacional "00" vira "+" (ex: 0055...).
    - Precisa casar com E.164 (`^\\+?[1-9]\\d{1,14}$`); caso contrário retorna None.
    - Sem "+": números que já começam com 55 e têm 12+ dígitos mantêm o país;
      os demais recebem o prefixo 55 (BR).
    - O "+" é removido no valor final.

    IMPORTANTE: NÃO adiciona dígitos como "9" - usa o número EXATAMENTE como recebido.
    """
    if telefone is None:
        return None

    limpo = _MASK_RE.sub("", str(telefone))
    if not limpo:
        return None

    if limpo.startswith("00"):
        limpo = "+" + limpo[2:]

    if not _E164_RE.match(limpo):
        return None

    if limpo.startswith("+"):
        return limpo[1:]

    if limpo.startswith("55") and len(limpo) >= 12:
        return limpo

    normalizado = "55" + limpo
    if len(normalizado) > 15:
        return None
    return normalizado


def phone_variants_for_search(telefone: Optional[str]) -> List[str]:
    """
    Retorna o número normalizado e suas variantes com/sem o "9" de celular.

    - 55 + DDD + 8 dígitos: adiciona variante "com 9 a mais".
    - 55 + DDD + 9 + 8 dígitos: adiciona variante "com 9 a menos".
    - Sempre inclui a forma sem 55 (bases antigas cadastradas sem país).
    """
    base = normalize_phone_number(telefone)
    if not base:
        return []

    out: List[str] = [base]

    def _add(v: str) -> None:
        if v and v not in out:
            out.append(v)

    if base.startswith("55"):
        nacional = base[2:]
        if len(nacional) == 10:
            _add("55" + nacional[:2] + "9" + nacional[2:])
        if len(nacional) == 11 and nacional[2] == "9":
            _add("55" + nacional[:2] + nacional[3:])
        for v in list(out):
            _add(v[2:])
    return out


def phone_from_jid(jid: Optional[str]) -> str:
    """Extrai o telefone de um JID do WhatsApp (ex: "5511999999999@s.whatsapp.net")."""
    if not jid:
        return ""
    return jid.split("@")[0] or jid
