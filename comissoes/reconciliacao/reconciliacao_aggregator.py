"""
Agrega liquidações de comissões por período de recebimento.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import pandas as pd

from comissoes.modelos import PeriodoComissao, Venda


ROTULO_SEM_PERIODO = "Sem Período"

COLUNAS_LIQUIDACOES = [
    "periodo",
    "ano",
    "mes",
    "numero_fatura",
    "cliente",
    "data_venda",
    "comissao_total",
]


@dataclass
class ResumoPeriodo:
    periodo: Optional[PeriodoComissao]
    rotulo: str
    total_comissao: float = 0.0
    quantidade_faturas: int = 0
    vendas: List[Venda] = field(default_factory=list)


class ReconciliacaoAggregator:
    """
    Agrega e formata as vendas liquidadas.
    """

    def resumir_por_periodo(self, vendas: List[Venda]) -> List[ResumoPeriodo]:
        """
        Agrupa as vendas liquidadas pelo período de recebimento.

        Args:
            vendas: Vendas (só as liquidadas são consideradas)

        Returns:
            Lista ordenada do período mais recente para o mais antigo;
            vendas liquidadas sem período ficam num grupo "Sem Período" no fim
        """
        grupos: Dict[Optional[PeriodoComissao], ResumoPeriodo] = {}

        for venda in vendas:
            if not venda.comissao_recebida_paga:
                continue
            periodo = venda.periodo_comissao_recebida
            if periodo not in grupos:
                rotulo = periodo.rotulo if periodo else ROTULO_SEM_PERIODO
                grupos[periodo] = ResumoPeriodo(periodo=periodo, rotulo=rotulo)

            resumo = grupos[periodo]
            resumo.total_comissao += venda.comissao_total
            resumo.quantidade_faturas += 1
            resumo.vendas.append(venda)

        return sorted(
            grupos.values(),
            key=lambda r: (0, -r.periodo.ano, -r.periodo.mes) if r.periodo else (1, 0, 0),
        )

    def criar_dataframe_liquidacoes(
        self, vendas: List[Venda], nomes_clientes: Optional[Mapping[str, str]] = None
    ) -> pd.DataFrame:
        """
        Cria DataFrame das vendas liquidadas.

        Args:
            vendas: Vendas (só as liquidadas são consideradas)
            nomes_clientes: {cliente_id: nome}

        Returns:
            DataFrame ordenado por período e data de venda (mais recentes primeiro)
        """
        nomes_clientes = nomes_clientes or {}
        linhas = []
        for venda in vendas:
            if not venda.comissao_recebida_paga:
                continue
            periodo = venda.periodo_comissao_recebida
            linhas.append(
                {
                    "periodo": periodo.rotulo if periodo else ROTULO_SEM_PERIODO,
                    "ano": periodo.ano if periodo else 0,
                    "mes": periodo.mes if periodo else 0,
                    "numero_fatura": venda.numero_fatura,
                    "cliente": nomes_clientes.get(venda.cliente_id, ""),
                    "data_venda": venda.data_venda,
                    "comissao_total": venda.comissao_total,
                }
            )

        if not linhas:
            return pd.DataFrame(columns=COLUNAS_LIQUIDACOES)

        df = pd.DataFrame(linhas, columns=COLUNAS_LIQUIDACOES)
        df = df.sort_values(["ano", "mes", "data_venda"], ascending=False, kind="stable")
        df["comissao_total"] = df["comissao_total"].astype(float).round(2)
        return df.reset_index(drop=True)
