"""
Orquestrador principal do motor de comissões.
Integra repositório, cálculos, reconciliação, alertas e relatórios nos fluxos
usados pelas páginas: registo de vendas, painel, recebimentos e relatórios.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from comissoes.alertas.avaliador_alertas import AvaliadorAlertas
from comissoes.calculos.comissao import Divergencia
from comissoes.calculos.lucro import DadosCalculoLucro, validar_dados_calculo
from comissoes.calculos.totais import aplicar_snapshot_tipo
from comissoes.erros import MetodoIncompleto
from comissoes.estado.repositorio import RepositorioRegistos
from comissoes.io.config_loader import ConfigLoader, Configuracao
from comissoes.modelos import (
    Alerta,
    EstadoVenda,
    LinhaVenda,
    PagamentoRecebido,
    PeriodoComissao,
    PreferenciaOrdenacao,
    Venda,
)
from comissoes.reconciliacao import (
    LiquidacaoManager,
    ReconciliacaoAggregator,
    ReconciliacaoCalculator,
    ReconciliacaoDetector,
    ResumoComissoes,
    ResumoPeriodo,
    TotaisRecebimentos,
    opcoes_periodos,
)
from comissoes.relatorios import (
    TotaisRelatorio,
    calcular_totais_relatorio,
    comissoes_por_tipo,
    criar_linhas_exportacao,
    evolucao_mensal,
    exportar_excel,
    filtrar_pagamentos_intervalo,
    filtrar_vendas_intervalo,
    intervalo_relatorio,
    listar_vendas,
)
from comissoes.utils.logging import ValidationLogger, configurar_logging


logger = logging.getLogger(__name__)


@dataclass
class PainelComissoes:
    resumo: ResumoComissoes
    divergencia: Divergencia
    previsao_mensal: float
    taxa_conversao: float
    evolucao: pd.DataFrame
    por_tipo: List[Dict[str, object]]
    alertas_nao_lidos: List[Alerta] = field(default_factory=list)


@dataclass
class PaginaRecebimentos:
    totais: TotaisRecebimentos
    pendentes_liquidacao: List[Venda]
    liquidadas_por_periodo: List[ResumoPeriodo]
    pagamentos: List[PagamentoRecebido]
    opcoes_periodos: List[PeriodoComissao]


@dataclass
class RelatorioPeriodo:
    inicio: date
    fim: date
    vendas: List[Venda]
    pagamentos: List[PagamentoRecebido]
    totais: TotaisRelatorio
    exportacao: pd.DataFrame


class ComissoesOrchestrator:
    """
    Orquestra os fluxos do motor de comissões sobre um repositório.
    """

    def __init__(
        self,
        repositorio: Optional[RepositorioRegistos] = None,
        configuracao: Optional[Configuracao] = None,
        validation_logger: Optional[ValidationLogger] = None,
    ):
        """
        Inicializa o orquestrador.

        Args:
            repositorio: Repositório de registos (novo e vazio por omissão)
            configuracao: Parâmetros (valores por omissão se não indicados)
            validation_logger: Recolhe as mensagens de validação dos formulários
        """
        self.repositorio = repositorio or RepositorioRegistos()
        self.configuracao = configuracao or Configuracao()
        self.validation_logger = validation_logger if validation_logger is not None else ValidationLogger()

        # Inicializar componentes
        self.liquidacao = LiquidacaoManager(self.repositorio)
        self.detector = ReconciliacaoDetector()
        self.aggregator = ReconciliacaoAggregator()
        self.calculator = ReconciliacaoCalculator(
            self.configuracao.limite_divergencia_percentagem,
            self.configuracao.limite_divergencia_valor,
        )
        self.alertas = AvaliadorAlertas(
            self.repositorio,
            dias_limite=self.configuracao.dias_alerta_cobranca,
            limite_percentagem=self.configuracao.limite_divergencia_percentagem,
            limite_valor=self.configuracao.limite_divergencia_valor,
        )

    @classmethod
    def a_partir_de_configuracao(
        cls, config_path: str = "config/PARAMETROS.xlsx", dotenv_path: Optional[str] = None
    ) -> "ComissoesOrchestrator":
        """
        Cria o orquestrador a partir dos ficheiros de configuração: ativa o log
        em ficheiro e carrega os dados gravados (se existirem).
        """
        validation_logger = ValidationLogger()
        configuracao = ConfigLoader(validation_logger).carregar(config_path, dotenv_path)
        configurar_logging(configuracao.ficheiro_log)

        orquestrador = cls(configuracao=configuracao, validation_logger=validation_logger)
        orquestrador.repositorio.carregar(configuracao.ficheiro_dados)
        return orquestrador

    # =====================================================
    # VENDAS
    # =====================================================

    def _nomes_clientes(self, utilizador_id: str) -> Dict[str, str]:
        return {c.id: c.nome for c in self.repositorio.selecionar("clientes", utilizador_id=utilizador_id)}

    def _nomes_tipos(self, utilizador_id: str) -> Dict[str, str]:
        return {t.id: t.nome for t in self.repositorio.selecionar("tipos_artigo", utilizador_id=utilizador_id)}

    def _preparar_linhas(self, utilizador_id: str, linhas: Iterable[LinhaVenda]) -> List[LinhaVenda]:
        """
        Copia a percentagem de comissão atual do tipo de cada linha e valida
        os campos do método escolhido.

        Raises:
            RegistoNaoEncontrado: tipo de artigo inexistente
            MetodoIncompleto: linha com campos em falta ou inválidos
        """
        preparadas = []
        for linha in linhas:
            tipo = self.repositorio.obter("tipos_artigo", linha.tipo_artigo_id, utilizador_id)
            linha = aplicar_snapshot_tipo(linha, tipo)

            validacao = validar_dados_calculo(DadosCalculoLucro.da_linha(linha), self.validation_logger)
            if not validacao.valido:
                campo, mensagem = next(iter(validacao.erros.items()))
                raise MetodoIncompleto(campo, f"Linha '{linha.artigo}': {mensagem}")

            preparadas.append(linha)
        return preparadas

    def registar_venda(
        self, venda: Venda, linhas: Iterable[LinhaVenda]
    ) -> Tuple[Venda, List[LinhaVenda]]:
        """
        Grava uma venda nova com as suas linhas.

        As comissões usam a percentagem do tipo de artigo no momento do
        registo. Se as linhas falharem, a venda não fica gravada.

        Returns:
            (venda com totais, linhas calculadas)
        """
        self.repositorio.obter("clientes", venda.cliente_id, venda.utilizador_id)
        preparadas = self._preparar_linhas(venda.utilizador_id, linhas)

        self.repositorio.inserir("vendas", venda)
        try:
            resultado = self.repositorio.substituir_linhas_venda(venda.id, preparadas)
        except Exception:
            self.repositorio.eliminar("vendas", venda.id)
            raise

        logger.info("[VENDAS] Fatura %s registada", venda.numero_fatura)
        return resultado

    def atualizar_venda(
        self,
        utilizador_id: str,
        venda_id: str,
        linhas: Optional[Iterable[LinhaVenda]] = None,
        **campos: Any,
    ) -> Tuple[Venda, List[LinhaVenda]]:
        """
        Atualiza o cabeçalho de uma venda e, se indicadas, substitui as linhas.

        Args:
            utilizador_id: Dono da venda
            venda_id: Venda a atualizar
            linhas: Novas linhas (None mantém as atuais)
            **campos: Campos do cabeçalho (cliente_id, numero_fatura, data_venda, ...)

        Returns:
            (venda com totais, linhas atuais)

        Raises:
            RegistoNaoEncontrado: venda, cliente ou tipo de artigo de outro utilizador
            MetodoIncompleto: linha inválida (a venda fica como estava)
        """
        self.repositorio.obter("vendas", venda_id, utilizador_id)
        if "utilizador_id" in campos and campos["utilizador_id"] != utilizador_id:
            raise ValueError("Não é possível mudar o dono de uma venda")
        if "cliente_id" in campos:
            self.repositorio.obter("clientes", campos["cliente_id"], utilizador_id)

        if linhas is None:
            linhas = self.repositorio.selecionar("linhas_venda", filtros={"venda_id": venda_id})
        else:
            linhas = self._preparar_linhas(utilizador_id, linhas)

        return self.repositorio.substituir_linhas_venda(venda_id, linhas, **campos)

    def eliminar_venda(self, utilizador_id: str, venda_id: str):
        self.repositorio.eliminar("vendas", venda_id, utilizador_id)

    def listar_vendas(
        self,
        utilizador_id: str,
        preferencia: Optional[PreferenciaOrdenacao] = None,
        termo_pesquisa: str = "",
    ) -> List[Venda]:
        vendas = self.repositorio.selecionar("vendas", utilizador_id=utilizador_id)
        return listar_vendas(vendas, self._nomes_clientes(utilizador_id), preferencia, termo_pesquisa)

    # =====================================================
    # PAGAMENTOS E LIQUIDAÇÕES
    # =====================================================

    def definir_estado_pagamento(
        self, utilizador_id: str, venda_id: str, estado: Union[EstadoVenda, str]
    ) -> Venda:
        return self.liquidacao.definir_estado_por_id(utilizador_id, venda_id, estado)

    def liquidar(self, utilizador_id: str, venda_id: str, periodo: Union[PeriodoComissao, str]) -> Venda:
        return self.liquidacao.liquidar_por_id(utilizador_id, venda_id, periodo)

    def desfazer_liquidacao(self, utilizador_id: str, venda_id: str) -> Venda:
        return self.liquidacao.desfazer_liquidacao_por_id(utilizador_id, venda_id)

    def registar_pagamento(self, pagamento: PagamentoRecebido) -> PagamentoRecebido:
        """
        Regista um recebimento manual e verifica se passou a haver divergência
        entre a comissão validada e o total recebido.
        """
        gravado = self.repositorio.inserir("pagamentos_recebidos", pagamento)
        self.alertas.verificar_alerta_divergencia(pagamento.utilizador_id)
        return gravado

    def pagina_recebimentos(self, utilizador_id: str, hoje: Optional[date] = None) -> PaginaRecebimentos:
        """
        Dados da página de recebimentos: totais, faturas por liquidar,
        liquidações por período e pagamentos manuais.
        """
        vendas = self.repositorio.selecionar("vendas", utilizador_id=utilizador_id)
        pagamentos = self.repositorio.selecionar(
            "pagamentos_recebidos", utilizador_id=utilizador_id, ordenar_por="data_pagamento", ascendente=False
        )

        return PaginaRecebimentos(
            totais=self.calculator.calcular_totais_recebimentos(vendas, pagamentos),
            pendentes_liquidacao=self.detector.obter_faturas_pendentes_liquidacao(vendas),
            liquidadas_por_periodo=self.aggregator.resumir_por_periodo(vendas),
            pagamentos=pagamentos,
            opcoes_periodos=opcoes_periodos(hoje, self.configuracao.meses_opcoes_periodo),
        )

    # =====================================================
    # PAINEL E RELATÓRIOS
    # =====================================================

    def painel(self, utilizador_id: str, hoje: Optional[date] = None) -> PainelComissoes:
        """
        Dados do painel. Antes de calcular, gera os alertas de cobrança em atraso.
        """
        self.alertas.verificar_alertas_cobranca(utilizador_id, hoje)

        vendas = self.repositorio.selecionar(
            "vendas", utilizador_id=utilizador_id, ordenar_por="data_venda", ascendente=True
        )
        pagamentos = self.repositorio.selecionar("pagamentos_recebidos", utilizador_id=utilizador_id)
        linhas = self.repositorio.selecionar("linhas_venda", utilizador_id=utilizador_id)

        resumo = self.calculator.calcular_resumo(vendas, pagamentos)
        return PainelComissoes(
            resumo=resumo,
            divergencia=self.calculator.avaliar_divergencia(resumo),
            previsao_mensal=self.calculator.calcular_previsao_mensal(vendas, self.configuracao.meses_previsao),
            taxa_conversao=self.calculator.calcular_taxa_conversao(vendas),
            evolucao=evolucao_mensal(vendas, self.configuracao.meses_evolucao, hoje),
            por_tipo=comissoes_por_tipo(linhas, self._nomes_tipos(utilizador_id)),
            alertas_nao_lidos=self.repositorio.selecionar(
                "alertas", utilizador_id=utilizador_id, filtros={"lido": False}, ordenar_por="criado_em", ascendente=False
            ),
        )

    def relatorio(
        self,
        utilizador_id: str,
        periodo: str = "este_mes",
        hoje: Optional[date] = None,
        inicio: Optional[date] = None,
        fim: Optional[date] = None,
    ) -> RelatorioPeriodo:
        """
        Relatório de um período: vendas e pagamentos no intervalo, totais e
        linhas para exportação.
        """
        inicio, fim = intervalo_relatorio(periodo, hoje, inicio, fim)

        vendas = filtrar_vendas_intervalo(
            self.repositorio.selecionar("vendas", utilizador_id=utilizador_id), inicio, fim
        )
        pagamentos = filtrar_pagamentos_intervalo(
            self.repositorio.selecionar("pagamentos_recebidos", utilizador_id=utilizador_id), inicio, fim
        )
        linhas = self.repositorio.selecionar(
            "linhas_venda", utilizador_id=utilizador_id, filtros={"venda_id": [v.id for v in vendas]}
        )

        return RelatorioPeriodo(
            inicio=inicio,
            fim=fim,
            vendas=vendas,
            pagamentos=pagamentos,
            totais=calcular_totais_relatorio(vendas, pagamentos),
            exportacao=criar_linhas_exportacao(vendas, linhas, self._nomes_clientes(utilizador_id)),
        )

    # =====================================================
    # PERSISTÊNCIA
    # =====================================================

    def guardar(self, filepath: Optional[str] = None):
        self.repositorio.guardar(filepath or self.configuracao.ficheiro_dados)

    def carregar(self, filepath: Optional[str] = None) -> bool:
        return self.repositorio.carregar(filepath or self.configuracao.ficheiro_dados)

    def exportar_relatorio(self, relatorio: RelatorioPeriodo, filepath: str) -> str:
        return exportar_excel(relatorio.exportacao, filepath)
