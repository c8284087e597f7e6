"""
Listagem de vendas (ordenação e pesquisa) e filtros por intervalo de datas
para a página de relatórios.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Mapping, Optional, Tuple

from comissoes.modelos import PagamentoRecebido, PreferenciaOrdenacao, Venda
from comissoes.utils.normalization import contem_texto, normalize_text


PERIODOS_RELATORIO = ("este_mes", "mes_passado", "ano_corrente", "personalizado")


@dataclass
class TotaisRelatorio:
    total_vendido: float = 0.0
    total_lucro: float = 0.0
    total_comissao: float = 0.0
    total_recebido: float = 0.0

    @property
    def margem_media(self) -> float:
        """Lucro / vendido em percentagem (0 sem vendas)."""
        return self.total_lucro / self.total_vendido * 100 if self.total_vendido > 0 else 0.0


def _chave_ordenacao(venda: Venda, chave: str, nomes_clientes: Mapping[str, str]):
    if chave == "cliente":
        return normalize_text(nomes_clientes.get(venda.cliente_id, ""))
    if chave == "estado":
        return venda.estado.value
    if chave == "numero_fatura":
        return normalize_text(venda.numero_fatura)
    return getattr(venda, chave)


def listar_vendas(
    vendas: Iterable[Venda],
    nomes_clientes: Mapping[str, str],
    preferencia: Optional[PreferenciaOrdenacao] = None,
    termo_pesquisa: str = "",
) -> List[Venda]:
    """
    Ordena e filtra a lista de vendas.

    A pesquisa ignora maiúsculas e acentos e procura no número da fatura e no
    nome do cliente.

    Args:
        vendas: Vendas do utilizador
        nomes_clientes: {cliente_id: nome}
        preferencia: Ordenação escolhida pelo utilizador (por omissão, data
            de venda decrescente)
        termo_pesquisa: Texto a procurar

    Returns:
        Lista ordenada e filtrada
    """
    preferencia = preferencia or PreferenciaOrdenacao()

    ordenadas = sorted(
        vendas,
        key=lambda v: _chave_ordenacao(v, preferencia.chave, nomes_clientes),
        reverse=preferencia.direcao == "desc",
    )

    return [
        venda
        for venda in ordenadas
        if contem_texto(venda.numero_fatura, termo_pesquisa)
        or contem_texto(nomes_clientes.get(venda.cliente_id, ""), termo_pesquisa)
    ]


def _ultimo_dia(ano: int, mes: int) -> date:
    return date(ano, mes, calendar.monthrange(ano, mes)[1])


def intervalo_relatorio(
    periodo: str,
    hoje: Optional[date] = None,
    inicio: Optional[date] = None,
    fim: Optional[date] = None,
) -> Tuple[date, date]:
    """
    Intervalo de datas (inclusivo) de um período de relatório.

    Args:
        periodo: este_mes | mes_passado | ano_corrente | personalizado
        hoje: Data de referência (por omissão, a data atual)
        inicio: Início do período personalizado (por omissão, dia 1 do mês atual)
        fim: Fim do período personalizado (por omissão, hoje)

    Returns:
        (inicio, fim)

    Raises:
        ValueError: período desconhecido ou intervalo invertido
    """
    hoje = hoje or date.today()

    if periodo == "este_mes":
        return date(hoje.year, hoje.month, 1), _ultimo_dia(hoje.year, hoje.month)

    if periodo == "mes_passado":
        ano, mes = (hoje.year, hoje.month - 1) if hoje.month > 1 else (hoje.year - 1, 12)
        return date(ano, mes, 1), _ultimo_dia(ano, mes)

    if periodo == "ano_corrente":
        return date(hoje.year, 1, 1), date(hoje.year, 12, 31)

    if periodo == "personalizado":
        inicio = inicio or date(hoje.year, hoje.month, 1)
        fim = fim or hoje
        if inicio > fim:
            raise ValueError(f"Intervalo inválido: {inicio} posterior a {fim}")
        return inicio, fim

    raise ValueError(f"Período de relatório desconhecido: '{periodo}' (esperado um de {PERIODOS_RELATORIO})")


def filtrar_vendas_intervalo(vendas: Iterable[Venda], inicio: date, fim: date) -> List[Venda]:
    return sorted(
        (venda for venda in vendas if inicio <= venda.data_venda <= fim),
        key=lambda v: v.data_venda,
        reverse=True,
    )


def filtrar_pagamentos_intervalo(
    pagamentos: Iterable[PagamentoRecebido], inicio: date, fim: date
) -> List[PagamentoRecebido]:
    return [pagamento for pagamento in pagamentos if inicio <= pagamento.data_pagamento <= fim]


def calcular_totais_relatorio(
    vendas: Iterable[Venda], pagamentos: Iterable[PagamentoRecebido]
) -> TotaisRelatorio:
    """Totais do relatório: vendido, lucro e comissão das vendas, e valor recebido."""
    totais = TotaisRelatorio()
    for venda in vendas:
        totais.total_vendido += venda.valor_total
        totais.total_lucro += venda.lucro_total
        totais.total_comissao += venda.comissao_total
    totais.total_recebido = sum((p.valor for p in pagamentos), 0.0)
    return totais
