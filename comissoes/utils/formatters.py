"""
Funções de formatação de valores para apresentação (pt-PT, euros).

O arredondamento a 2 casas decimais acontece apenas aqui e nas saídas de
relatório; os cálculos nunca arredondam.
"""

from datetime import date, datetime
from typing import Union

import pandas as pd


def _separadores_pt(texto: str) -> str:
    return texto.replace(",", "X").replace(".", ",").replace("X", ".")


def formatar_valor(valor: Union[float, int, None]) -> str:
    """
    Formata um valor como moeda em euros.

    Args:
        valor: Valor numérico a ser formatado

    Returns:
        String formatada como "1.234,56 €"
    """
    if valor is None or pd.isna(valor):
        return "0,00 €"

    try:
        valor_float = float(valor)
        if valor_float < 0:
            return f"-{_separadores_pt(f'{abs(valor_float):,.2f}')} €"
        return f"{_separadores_pt(f'{valor_float:,.2f}')} €"
    except (ValueError, TypeError):
        return "0,00 €"


def formatar_percentagem(valor: Union[float, int, None], casas: int = 2) -> str:
    """
    Formata uma percentagem já expressa em 0-100.

    Args:
        valor: Percentagem (ex: 12.5 para 12,50%)
        casas: Número de casas decimais (default: 2)

    Returns:
        String formatada como "12,50%"
    """
    if valor is None or pd.isna(valor):
        return f"{0:.{casas}f}%".replace(".", ",")

    try:
        return _separadores_pt(f"{float(valor):,.{casas}f}") + "%"
    except (ValueError, TypeError):
        return f"{0:.{casas}f}%".replace(".", ",")


def formatar_data(data: Union[date, datetime, str, None], formato: str = "%d/%m/%Y") -> str:
    """
    Formata uma data (por omissão no formato 15/09/2025).

    Strings ISO são convertidas; valores inválidos dão "-".
    """
    if data is None or (not isinstance(data, (date, str)) and pd.isna(data)):
        return "-"

    if isinstance(data, (date, datetime)):
        return data.strftime(formato)

    try:
        return datetime.strptime(str(data)[:10], "%Y-%m-%d").strftime(formato)
    except ValueError:
        return "-"
