"""
Módulo de normalização de texto.
Usado em pesquisas, correspondência de tipos de artigo e leitura de períodos.
"""

import pandas as pd
import unicodedata


def normalize_text(s):
    """
    Normaliza uma string removendo acentos, BOM e espaços extras.

    Args:
        s: String ou valor a ser normalizado (pode ser NaN)

    Returns:
        String normalizada em maiúsculas, sem acentos e sem espaços extras.
        Retorna string vazia se o valor for NaN.

    Exemplos:
        >>> normalize_text("Março 2026")
        'MARCO 2026'
        >>> normalize_text("\ufeffTexto com BOM")
        'TEXTO COM BOM'
        >>> normalize_text(pd.NA)
        ''
    """
    if s is None or (not isinstance(s, str) and pd.isna(s)):
        return ""
    s = str(s)
    # Remover BOM (Byte Order Mark) se presente
    s = s.replace("\ufeff", "")
    s = unicodedata.normalize("NFKD", s).encode("ASCII", "ignore").decode("ASCII")
    return " ".join(s.strip().upper().split())


def contem_texto(texto, termo) -> bool:
    """
    Verifica se `termo` aparece em `texto`, ignorando acentos e maiúsculas.

    Um termo vazio corresponde sempre.
    """
    termo_normalizado = normalize_text(termo)
    if not termo_normalizado:
        return True
    return termo_normalizado in normalize_text(texto)
