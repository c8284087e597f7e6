"""
Cálculos de lucro e comissão por linha e por venda.
"""

from .lucro import (
    DadosCalculoLucro,
    ResultadoLucro,
    ResultadoValidacao,
    calcular_lucro_linha,
    determinar_metodo_utilizado,
    validar_dados_calculo,
)
from .comissao import (
    ComissaoPorTipo,
    Divergencia,
    agrupar_comissoes_por_tipo,
    calcular_comissao,
    calcular_divergencia,
    somar_comissoes,
)
from .totais import aplicar_snapshot_tipo, recalcular_linha, recalcular_totais_venda

__all__ = [
    "DadosCalculoLucro",
    "ResultadoLucro",
    "ResultadoValidacao",
    "calcular_lucro_linha",
    "determinar_metodo_utilizado",
    "validar_dados_calculo",
    "ComissaoPorTipo",
    "Divergencia",
    "agrupar_comissoes_por_tipo",
    "calcular_comissao",
    "calcular_divergencia",
    "somar_comissoes",
    "aplicar_snapshot_tipo",
    "recalcular_linha",
    "recalcular_totais_venda",
]
