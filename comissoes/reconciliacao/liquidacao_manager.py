"""
Gestão do ciclo de vida de pagamento e liquidação de comissões de uma venda.

Dois eixos independentes:
- estado de pagamento pelo cliente: pendente / parcial / pago (qualquer transição)
- liquidação da comissão: por liquidar -> liquidada(período), só a partir de
  vendas pagas; desfazer é sempre permitido
"""

import logging
from datetime import date
from typing import List, Optional, Union

import pandas as pd

from comissoes.erros import LiquidacaoInvalida
from comissoes.estado.repositorio import RepositorioRegistos
from comissoes.modelos import EstadoVenda, PeriodoComissao, Venda

from .reconciliacao_validator import ReconciliacaoValidator


logger = logging.getLogger(__name__)


def opcoes_periodos(hoje: Optional[date] = None, meses: int = 6) -> List[PeriodoComissao]:
    """
    Períodos disponíveis para marcar o mês de recebimento.

    Returns:
        Lista com o mês atual e os `meses - 1` anteriores, do mais recente
        para o mais antigo
    """
    atual = pd.Period(hoje or date.today(), freq="M")
    return [
        PeriodoComissao(ano=(atual - i).year, mes=(atual - i).month) for i in range(max(meses, 0))
    ]


class LiquidacaoManager:
    """
    Aplica transições de estado às vendas.

    Os métodos sobre `Venda` devolvem cópias atualizadas; as variantes
    `*_por_id` leem e gravam através do repositório.
    """

    def __init__(
        self,
        repositorio: Optional[RepositorioRegistos] = None,
        validator: Optional[ReconciliacaoValidator] = None,
    ):
        """
        Inicializa o gestor.

        Args:
            repositorio: Repositório usado pelas variantes por id
            validator: Validador das liquidações
        """
        self.repositorio = repositorio
        self.validator = validator or ReconciliacaoValidator()

    def definir_estado_pagamento(self, venda: Venda, estado: Union[EstadoVenda, str]) -> Venda:
        """Altera o estado de pagamento pelo cliente (qualquer transição é aceite)."""
        novo_estado = EstadoVenda(estado)

        if venda.comissao_recebida_paga and novo_estado != EstadoVenda.PAGO:
            logger.warning(
                "[LIQUIDACAO] Venda %s liquidada passou para '%s'", venda.numero_fatura, novo_estado.value
            )

        return venda.model_copy(update={"estado": novo_estado})

    def liquidar(self, venda: Venda, periodo: Union[PeriodoComissao, str]) -> Venda:
        """
        Marca a comissão da venda como recebida no período indicado.

        Args:
            venda: Venda paga pelo cliente
            periodo: PeriodoComissao ou rótulo ("Março 2026", "2026-03")

        Raises:
            LiquidacaoInvalida: se a venda não estiver paga
            ValueError: se o período não for reconhecido
        """
        valido, mensagem = self.validator.validar_liquidacao(venda)
        if not valido:
            logger.warning("[LIQUIDACAO] %s", mensagem)
            raise LiquidacaoInvalida(venda.id, venda.estado.value)

        if not isinstance(periodo, PeriodoComissao):
            periodo = PeriodoComissao.de_rotulo(periodo)

        logger.info("[LIQUIDACAO] Fatura %s liquidada em %s", venda.numero_fatura, periodo.rotulo)
        return venda.model_copy(
            update={"comissao_recebida_paga": True, "periodo_comissao_recebida": periodo}
        )

    def desfazer_liquidacao(self, venda: Venda) -> Venda:
        """Anula a liquidação: limpa a marca e o período."""
        logger.info("[LIQUIDACAO] Liquidação da fatura %s desfeita", venda.numero_fatura)
        return venda.model_copy(
            update={"comissao_recebida_paga": False, "periodo_comissao_recebida": None}
        )

    # =====================================================
    # VARIANTES POR ID (via repositório)
    # =====================================================

    def _repositorio(self) -> RepositorioRegistos:
        if self.repositorio is None:
            raise RuntimeError("LiquidacaoManager sem repositório configurado")
        return self.repositorio

    def definir_estado_por_id(
        self, utilizador_id: str, venda_id: str, estado: Union[EstadoVenda, str]
    ) -> Venda:
        repositorio = self._repositorio()
        venda = repositorio.obter("vendas", venda_id, utilizador_id)
        return repositorio.substituir("vendas", self.definir_estado_pagamento(venda, estado))

    def liquidar_por_id(
        self, utilizador_id: str, venda_id: str, periodo: Union[PeriodoComissao, str]
    ) -> Venda:
        repositorio = self._repositorio()
        venda = repositorio.obter("vendas", venda_id, utilizador_id)
        return repositorio.substituir("vendas", self.liquidar(venda, periodo))

    def desfazer_liquidacao_por_id(self, utilizador_id: str, venda_id: str) -> Venda:
        repositorio = self._repositorio()
        venda = repositorio.obter("vendas", venda_id, utilizador_id)
        return repositorio.substituir("vendas", self.desfazer_liquidacao(venda))
