"""
Liquidação e reconciliação de comissões recebidas.
"""

from .liquidacao_manager import LiquidacaoManager, opcoes_periodos
from .reconciliacao_aggregator import ReconciliacaoAggregator, ResumoPeriodo
from .reconciliacao_calculator import ReconciliacaoCalculator, ResumoComissoes, TotaisRecebimentos
from .reconciliacao_detector import ReconciliacaoDetector
from .reconciliacao_validator import ReconciliacaoValidator

__all__ = [
    "LiquidacaoManager",
    "opcoes_periodos",
    "ReconciliacaoAggregator",
    "ResumoPeriodo",
    "ReconciliacaoCalculator",
    "ResumoComissoes",
    "TotaisRecebimentos",
    "ReconciliacaoDetector",
    "ReconciliacaoValidator",
]
