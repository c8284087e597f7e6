"""
Avaliação de alertas de cobrança e de divergência.

Os alertas são idempotentes: enquanto existir um alerta não lido para a mesma
condição (tipo + venda), não é criado outro. Depois de lido, uma nova execução
volta a criá-lo se a condição se mantiver.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from comissoes.calculos.comissao import (
    LIMITE_DIVERGENCIA_PERCENTAGEM,
    LIMITE_DIVERGENCIA_VALOR,
    esta_em_boa_cobranca,
)
from comissoes.erros import RegistoNaoEncontrado
from comissoes.estado.repositorio import RepositorioRegistos
from comissoes.modelos import Alerta, TipoAlerta
from comissoes.reconciliacao.reconciliacao_calculator import ReconciliacaoCalculator
from comissoes.utils.formatters import formatar_valor


logger = logging.getLogger(__name__)

DIAS_ALERTA_COBRANCA = 30
CLIENTE_REMOVIDO = "Cliente Removido"


class AvaliadorAlertas:
    """
    Cria alertas no repositório a partir do estado das vendas e pagamentos.
    """

    def __init__(
        self,
        repositorio: RepositorioRegistos,
        dias_limite: int = DIAS_ALERTA_COBRANCA,
        limite_percentagem: float = LIMITE_DIVERGENCIA_PERCENTAGEM,
        limite_valor: float = LIMITE_DIVERGENCIA_VALOR,
    ):
        """
        Inicializa o avaliador.

        Args:
            repositorio: Repositório de registos
            dias_limite: Dias após a data de venda a partir dos quais uma venda
                não paga está em atraso
            limite_percentagem: Tolerância de divergência em percentagem
            limite_valor: Tolerância de divergência em euros
        """
        self.repositorio = repositorio
        self.dias_limite = dias_limite
        self.calculator = ReconciliacaoCalculator(limite_percentagem, limite_valor)

    def _nome_cliente(self, cliente_id: str) -> str:
        try:
            return self.repositorio.obter("clientes", cliente_id).nome
        except RegistoNaoEncontrado:
            return CLIENTE_REMOVIDO

    def verificar_alertas_cobranca(self, utilizador_id: str, hoje: Optional[date] = None) -> List[Alerta]:
        """
        Cria um alerta de cobrança para cada venda não paga em atraso.

        Uma venda está em atraso quando `data_venda < hoje - dias_limite`.

        Args:
            utilizador_id: Dono das vendas
            hoje: Data de referência (por omissão, a data atual)

        Returns:
            Alertas criados nesta execução
        """
        hoje = hoje or date.today()
        data_limite = hoje - timedelta(days=self.dias_limite)

        vendas = self.repositorio.selecionar("vendas", utilizador_id=utilizador_id)
        atrasadas = [v for v in vendas if not esta_em_boa_cobranca(v) and v.data_venda < data_limite]

        criados = []
        for venda in atrasadas:
            if self.repositorio.existe_alerta_nao_lido(
                utilizador_id, TipoAlerta.COBRANCA, campo_contexto="venda_id", valor=venda.id
            ):
                continue

            dias_atraso = (hoje - venda.data_venda).days
            alerta = Alerta(
                utilizador_id=utilizador_id,
                tipo=TipoAlerta.COBRANCA,
                mensagem=(
                    f"Fatura {venda.numero_fatura} ({self._nome_cliente(venda.cliente_id)}) "
                    f"em atraso há {dias_atraso} dias (limite: {self.dias_limite} dias)."
                ),
                dados_contexto={
                    "venda_id": venda.id,
                    "valor": venda.valor_total,
                    "dias_atraso": dias_atraso,
                },
            )
            criados.append(self.repositorio.inserir("alertas", alerta))

        if criados:
            logger.info("[ALERTAS] %d alerta(s) de cobrança criados", len(criados))
        return criados

    def verificar_alerta_divergencia(self, utilizador_id: str) -> Optional[Alerta]:
        """
        Cria um alerta de divergência quando a comissão validada e o valor
        recebido diferem para lá da tolerância.

        Returns:
            O alerta criado, ou None se não houver divergência ou se já existir
            um alerta de divergência não lido
        """
        vendas = self.repositorio.selecionar("vendas", utilizador_id=utilizador_id)
        pagamentos = self.repositorio.selecionar("pagamentos_recebidos", utilizador_id=utilizador_id)

        resumo = self.calculator.calcular_resumo(vendas, pagamentos)
        divergencia = self.calculator.avaliar_divergencia(resumo)
        if not divergencia.tem_divergencia:
            return None

        if self.repositorio.existe_alerta_nao_lido(utilizador_id, TipoAlerta.DIVERGENCIA):
            return None

        alerta = Alerta(
            utilizador_id=utilizador_id,
            tipo=TipoAlerta.DIVERGENCIA,
            mensagem=(
                f"Divergência de {formatar_valor(divergencia.divergencia)} entre a comissão "
                f"validada ({formatar_valor(resumo.validada)}) e o valor recebido "
                f"({formatar_valor(resumo.recebida)})."
            ),
            dados_contexto={
                "comissao_validada": resumo.validada,
                "valor_recebido": resumo.recebida,
                "divergencia": divergencia.divergencia,
                "percentagem": divergencia.percentagem,
            },
        )
        logger.info("[ALERTAS] Alerta de divergência criado (%.2f €)", divergencia.divergencia)
        return self.repositorio.inserir("alertas", alerta)

    def marcar_como_lido(self, alerta_id: str, utilizador_id: str) -> Alerta:
        self.repositorio.obter("alertas", alerta_id, utilizador_id)
        return self.repositorio.atualizar("alertas", alerta_id, lido=True)
