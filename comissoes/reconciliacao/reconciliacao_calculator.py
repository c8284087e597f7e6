"""
Calcula os resumos de comissões (pendente, validada, recebida) e os totais
da página de recebimentos.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from comissoes.calculos.comissao import (
    LIMITE_DIVERGENCIA_PERCENTAGEM,
    LIMITE_DIVERGENCIA_VALOR,
    Divergencia,
    calcular_comissao_pendente,
    calcular_comissao_validada,
    calcular_divergencia,
    calcular_total_recebido,
    esta_em_boa_cobranca,
    somar_comissoes,
)
from comissoes.modelos import PagamentoRecebido, Venda


logger = logging.getLogger(__name__)


@dataclass
class ResumoComissoes:
    pendente: float = 0.0
    validada: float = 0.0
    recebida: float = 0.0
    diferenca: float = 0.0


@dataclass
class TotaisRecebimentos:
    """Totais da página de recebimentos (manual + liquidações)."""

    total_manuais: float = 0.0
    total_reconciliado: float = 0.0
    total_pendentes: float = 0.0
    total_geral: float = 0.0


class ReconciliacaoCalculator:
    """
    Calcula resumos e totais de comissões a partir de vendas e pagamentos.
    """

    def __init__(
        self,
        limite_percentagem: float = LIMITE_DIVERGENCIA_PERCENTAGEM,
        limite_valor: float = LIMITE_DIVERGENCIA_VALOR,
    ) -> None:
        """
        Inicializa o calculador.

        Args:
            limite_percentagem: Tolerância de divergência em percentagem
            limite_valor: Tolerância de divergência em euros
        """
        self.limite_percentagem = limite_percentagem
        self.limite_valor = limite_valor

    def calcular_resumo(
        self, vendas: Iterable[Venda], pagamentos: Iterable[PagamentoRecebido]
    ) -> ResumoComissoes:
        """
        Resumo do painel.

        - pendente: comissões de vendas ainda não pagas pelo cliente
        - validada: comissões de vendas pagas (boa cobrança)
        - recebida: soma dos pagamentos registados
        - diferenca: validada - recebida

        Returns:
            ResumoComissoes
        """
        vendas = list(vendas)
        pendente = calcular_comissao_pendente(vendas)
        validada = calcular_comissao_validada(vendas)
        recebida = calcular_total_recebido(pagamentos)

        return ResumoComissoes(
            pendente=pendente,
            validada=validada,
            recebida=recebida,
            diferenca=validada - recebida,
        )

    def calcular_totais_recebimentos(
        self, vendas: Iterable[Venda], pagamentos: Iterable[PagamentoRecebido]
    ) -> TotaisRecebimentos:
        """
        Totais da página de recebimentos.

        - total_manuais: pagamentos registados manualmente
        - total_reconciliado: comissões de vendas liquidadas
        - total_pendentes: comissões de vendas pagas ainda por liquidar
        - total_geral: total_manuais + total_reconciliado

        Returns:
            TotaisRecebimentos
        """
        vendas = list(vendas)
        total_manuais = calcular_total_recebido(pagamentos)
        total_reconciliado = somar_comissoes(v for v in vendas if v.comissao_recebida_paga)
        total_pendentes = somar_comissoes(
            v for v in vendas if esta_em_boa_cobranca(v) and not v.comissao_recebida_paga
        )

        return TotaisRecebimentos(
            total_manuais=total_manuais,
            total_reconciliado=total_reconciliado,
            total_pendentes=total_pendentes,
            total_geral=total_manuais + total_reconciliado,
        )

    def calcular_previsao_mensal(self, vendas: Iterable[Venda], meses: int = 3) -> float:
        """
        Previsão de comissão mensal: média das comissões validadas nos últimos
        `meses` meses com vendas pagas.

        Returns:
            Média (0.0 se não houver vendas pagas)
        """
        linhas = [
            {"chave": venda.data_venda.strftime("%Y-%m"), "comissao": venda.comissao_total}
            for venda in vendas
            if esta_em_boa_cobranca(venda)
        ]
        if not linhas or meses <= 0:
            return 0.0

        por_mes = pd.DataFrame(linhas).groupby("chave")["comissao"].sum()
        recentes = por_mes.sort_index(ascending=False).head(meses)
        return float(recentes.mean())

    def calcular_taxa_conversao(self, vendas: Iterable[Venda]) -> float:
        """
        Percentagem das vendas já pagas pelo cliente.

        Returns:
            Taxa entre 0 e 100 (0.0 sem vendas)
        """
        vendas: List[Venda] = list(vendas)
        if not vendas:
            return 0.0
        pagas = sum(1 for venda in vendas if esta_em_boa_cobranca(venda))
        return pagas / len(vendas) * 100

    def avaliar_divergencia(self, resumo: ResumoComissoes) -> Divergencia:
        """Divergência entre a comissão validada e o valor recebido."""
        divergencia = calcular_divergencia(
            resumo.validada,
            resumo.recebida,
            limite_percentagem=self.limite_percentagem,
            limite_valor=self.limite_valor,
        )
        if divergencia.tem_divergencia:
            logger.info(
                "[RECONCILIACAO] Divergência de %.2f € (%.1f%%)",
                divergencia.divergencia,
                divergencia.percentagem,
            )
        return divergencia
