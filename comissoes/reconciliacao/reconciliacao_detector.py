"""
Deteta vendas cuja comissão está por liquidar ou já liquidada.
"""

from typing import Iterable, List

from comissoes.calculos.comissao import esta_em_boa_cobranca
from comissoes.modelos import Venda


class ReconciliacaoDetector:
    """
    Separa as vendas pelo estado de liquidação da comissão.

    Critérios para "por liquidar":
    - Venda paga pelo cliente (boa cobrança)
    - Comissão ainda não marcada como recebida
    """

    def obter_faturas_pendentes_liquidacao(self, vendas: Iterable[Venda]) -> List[Venda]:
        """
        Vendas pagas cuja comissão ainda não foi recebida.

        Returns:
            Lista ordenada da venda mais recente para a mais antiga
        """
        pendentes = [venda for venda in vendas if self._venda_por_liquidar(venda)]
        return sorted(pendentes, key=lambda v: v.data_venda, reverse=True)

    def obter_faturas_liquidadas(self, vendas: Iterable[Venda]) -> List[Venda]:
        """
        Vendas com a comissão já marcada como recebida.

        Returns:
            Lista ordenada por período (mais recente primeiro, sem período no
            fim) e, dentro do período, por data de venda decrescente
        """
        liquidadas = [venda for venda in vendas if venda.comissao_recebida_paga]
        liquidadas.sort(key=lambda v: v.data_venda, reverse=True)
        liquidadas.sort(
            key=lambda v: (0, -v.periodo_comissao_recebida.ano, -v.periodo_comissao_recebida.mes)
            if v.periodo_comissao_recebida
            else (1, 0, 0)
        )
        return liquidadas

    def _venda_por_liquidar(self, venda: Venda) -> bool:
        return esta_em_boa_cobranca(venda) and not venda.comissao_recebida_paga
