"""
Séries para os gráficos do painel: evolução mensal e comissões por tipo.
"""

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from comissoes.modelos import MESES_ABREVIADOS_PT, LinhaVenda, Venda


TIPO_OUTROS = "Outros"


def _rotulo_mes(periodo: pd.Period) -> str:
    """Rótulo curto do mês (ex.: 'mar/26')."""
    return f"{MESES_ABREVIADOS_PT[periodo.month - 1]}/{periodo.year % 100:02d}"


def evolucao_mensal(vendas: Iterable[Venda], meses: int = 6, hoje: Optional[date] = None) -> pd.DataFrame:
    """
    Comissão e lucro por mês de venda.

    Os últimos `meses` meses (incluindo o atual) aparecem sempre, a zero se
    não houver vendas. Meses com vendas fora dessa janela são acrescentados.
    O resultado vem ordenado cronologicamente pela chave ISO (AAAA-MM).

    Args:
        vendas: Vendas a agregar
        meses: Número de meses pré-preenchidos
        hoje: Data de referência (por omissão, a data atual)

    Returns:
        DataFrame com colunas chave, mes, comissao, lucro
    """
    atual = pd.Period(hoje or date.today(), freq="M")
    janela = [atual - i for i in range(max(meses, 0))]

    base = pd.DataFrame(
        {
            "periodo": janela,
            "comissao": [0.0] * len(janela),
            "lucro": [0.0] * len(janela),
        }
    )
    dados = pd.DataFrame(
        [
            {
                "periodo": pd.Period(venda.data_venda, freq="M"),
                "comissao": venda.comissao_total,
                "lucro": venda.lucro_total,
            }
            for venda in vendas
        ],
        columns=["periodo", "comissao", "lucro"],
    )

    df = pd.concat([base, dados], ignore_index=True) if not dados.empty else base
    if df.empty:
        return pd.DataFrame(columns=["chave", "mes", "comissao", "lucro"])

    df["chave"] = df["periodo"].map(lambda p: f"{p.year:04d}-{p.month:02d}")
    df["mes"] = df["periodo"].map(_rotulo_mes)

    agregado = (
        df.groupby(["chave", "mes"], as_index=False)[["comissao", "lucro"]]
        .sum()
        .sort_values("chave")
        .reset_index(drop=True)
    )
    agregado["comissao"] = agregado["comissao"].astype(float).round(2)
    agregado["lucro"] = agregado["lucro"].astype(float).round(2)
    return agregado


def comissoes_por_tipo(
    linhas: Iterable[LinhaVenda], nomes_tipos: Mapping[str, str]
) -> List[Dict[str, object]]:
    """
    Soma das comissões por nome de tipo de artigo.

    Args:
        linhas: Linhas de venda
        nomes_tipos: {tipo_artigo_id: nome}; tipos desconhecidos contam como "Outros"

    Returns:
        Lista de {tipo, valor}, só com valor > 0, por valor decrescente
    """
    df = pd.DataFrame(
        [
            {
                "tipo": nomes_tipos.get(linha.tipo_artigo_id) or TIPO_OUTROS,
                "valor": linha.comissao_calculada,
            }
            for linha in linhas
        ],
        columns=["tipo", "valor"],
    )
    if df.empty:
        return []

    por_tipo = df.groupby("tipo", sort=False)["valor"].sum().round(2)
    por_tipo = por_tipo[por_tipo > 0].sort_values(ascending=False, kind="stable")
    return [{"tipo": tipo, "valor": float(valor)} for tipo, valor in por_tipo.items()]
