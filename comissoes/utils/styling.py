"""
Módulo de estilização de planilhas Excel.
Pinta os grupos de colunas do relatório exportado e aplica formatos numéricos.
"""

import logging
import zipfile
from typing import Iterable, Optional

from openpyxl import load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException


logger = logging.getLogger(__name__)


def light_fill(rgb_hex: str) -> PatternFill:
    """
    Cria um PatternFill com cor clara (pastel).

    Args:
        rgb_hex: Código hexadecimal da cor sem '#' (ex: 'E3F2FD')

    Returns:
        PatternFill configurado com a cor especificada.
    """
    return PatternFill(start_color=rgb_hex, end_color=rgb_hex, fill_type="solid")


# Paleta suave (pastéis, claras) para coloração de grupos de colunas
PALETTE = [
    "E3F2FD",  # azul claríssimo
    "E8F5E9",  # verde claríssimo
    "FFF8E1",  # amarelo claríssimo
    "F3E5F5",  # lilás claríssimo
]

# Grupo → cabeçalhos exatos das colunas do relatório
GRUPOS_COLUNAS = {
    "identificacao": ["DATA", "Cliente", "FATURA"],
    "negocio": ["CUSTO", "NEGÓCIO FECHADO", "VALOR"],
    "comissao": ["Valor/Comiss", "COMISSÃO (%)", "COMISSÃO TOTAL"],
    "estado": ["PAGO CO"],
}

FORMATO_MOEDA = '#,##0.00 "€"'
FORMATO_PERCENTAGEM = '0.00"%"'
FORMATO_DATA = "DD/MM/YYYY"

FORMATOS_COLUNAS = {
    "DATA": FORMATO_DATA,
    "CUSTO": FORMATO_MOEDA,
    "VALOR": FORMATO_MOEDA,
    "Valor/Comiss": FORMATO_MOEDA,
    "COMISSÃO (%)": FORMATO_PERCENTAGEM,
    "COMISSÃO TOTAL": FORMATO_MOEDA,
}


def match_group(header: str) -> Optional[str]:
    """
    Identifica a qual grupo um cabeçalho de coluna pertence.

    Returns:
        Nome do grupo encontrado ou None se não houver correspondência.
    """
    h = str(header).strip()
    for group, headers in GRUPOS_COLUNAS.items():
        if h in headers:
            return group
    return None


def apply_group_fills_to_sheet(ws):
    """
    Pinta colunas inteiras do mesmo grupo com a mesma cor clara, põe o
    cabeçalho a negrito e aplica o formato numérico de cada coluna.
    Não altera valores.

    Args:
        ws: Worksheet do openpyxl a ser estilizada
    """
    header_row = 1
    max_row = ws.max_row

    color_for_group = {
        group: light_fill(PALETTE[idx % len(PALETTE)]) for idx, group in enumerate(GRUPOS_COLUNAS)
    }

    for c in range(1, ws.max_column + 1):
        header = ws.cell(row=header_row, column=c).value
        if header is None:
            continue

        ws.cell(row=header_row, column=c).font = Font(bold=True)
        ws.column_dimensions[get_column_letter(c)].width = max(12, len(str(header)) + 4)

        group = match_group(header)
        formato = FORMATOS_COLUNAS.get(str(header).strip())
        for r in range(1, max_row + 1):
            cell = ws.cell(row=r, column=c)
            if group:
                cell.fill = color_for_group[group]
            if formato and r > header_row:
                cell.number_format = formato

    ws.freeze_panes = "A2"


def style_output_workbook(xlsx_path: str, sheet_names: Iterable[str] = ("RELATORIO",)) -> bool:
    """
    Carrega o ficheiro Excel gerado e estiliza as abas indicadas.

    Args:
        xlsx_path: Caminho completo para o ficheiro Excel a ser estilizado
        sheet_names: Abas a estilizar (as que não existirem são ignoradas)

    Returns:
        True se o ficheiro foi estilizado e gravado
    """
    try:
        wb = load_workbook(xlsx_path)
    except (OSError, KeyError, zipfile.BadZipFile, InvalidFileException) as e:
        logger.warning("[RELATORIOS] Não foi possível estilizar %s: %s", xlsx_path, e)
        return False

    for sheet_name in sheet_names:
        if sheet_name in wb.sheetnames:
            apply_group_fills_to_sheet(wb[sheet_name])

    wb.save(xlsx_path)
    return True
