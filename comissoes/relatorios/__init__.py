"""
Agregações para o painel, listagens e relatórios.
"""

from .evolucao_mensal import comissoes_por_tipo, evolucao_mensal
from .exportacao import COLUNAS_EXPORTACAO, criar_linhas_exportacao, exportar_excel
from .listagem import (
    TotaisRelatorio,
    calcular_totais_relatorio,
    filtrar_pagamentos_intervalo,
    filtrar_vendas_intervalo,
    intervalo_relatorio,
    listar_vendas,
)

__all__ = [
    "evolucao_mensal",
    "comissoes_por_tipo",
    "COLUNAS_EXPORTACAO",
    "criar_linhas_exportacao",
    "exportar_excel",
    "TotaisRelatorio",
    "calcular_totais_relatorio",
    "filtrar_pagamentos_intervalo",
    "filtrar_vendas_intervalo",
    "intervalo_relatorio",
    "listar_vendas",
]
