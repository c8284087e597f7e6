"""
Testes das agregações do painel, da listagem de vendas e dos relatórios.
"""

import os
import sys
from datetime import date

import pytest
from openpyxl import load_workbook

# Adicionar o diretório raiz ao path para importar os módulos
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from comissoes.modelos import LinhaVenda, PagamentoRecebido, PreferenciaOrdenacao, Venda
from comissoes.relatorios import (
    COLUNAS_EXPORTACAO,
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
from comissoes.utils.styling import style_output_workbook


def _venda(numero, data_venda, comissao=0.0, lucro=0.0, cliente_id="c1", estado="pendente", valor=0.0):
    return Venda(
        utilizador_id="u1",
        cliente_id=cliente_id,
        numero_fatura=numero,
        data_venda=data_venda,
        estado=estado,
        valor_total=valor,
        lucro_total=lucro,
        comissao_total=comissao,
    )


def _linha(tipo_id, comissao, venda_id="v1", **campos):
    dados = {
        "venda_id": venda_id,
        "artigo": "Artigo",
        "tipo_artigo_id": tipo_id,
        "quantidade": 1,
        "metodo_calculo": "manual",
        "lucro_manual": 10,
        "comissao_calculada": comissao,
    }
    dados.update(campos)
    return LinhaVenda(**dados)


def test_evolucao_mensal_pre_preenchida_a_zero():
    df = evolucao_mensal([], meses=6, hoje=date(2026, 3, 15))

    assert list(df["chave"]) == ["2025-10", "2025-11", "2025-12", "2026-01", "2026-02", "2026-03"]
    assert list(df["mes"]) == ["out/25", "nov/25", "dez/25", "jan/26", "fev/26", "mar/26"]
    assert (df["comissao"] == 0).all()
    assert (df["lucro"] == 0).all()


def test_evolucao_mensal_ordenada_cronologicamente():
    vendas = [
        _venda("FT 1", date(2026, 3, 2), comissao=6.004, lucro=60),
        _venda("FT 2", date(2026, 3, 20), comissao=4, lucro=40),
        _venda("FT 3", date(2024, 12, 1), comissao=5, lucro=50),
        _venda("FT 4", date(2026, 1, 10), comissao=1.5, lucro=15),
    ]

    df = evolucao_mensal(vendas, meses=3, hoje=date(2026, 3, 15))

    assert list(df["chave"]) == ["2024-12", "2026-01", "2026-02", "2026-03"], "Meses fora da janela entram na ordem certa"
    por_chave = df.set_index("chave")
    assert por_chave.loc["2026-03", "comissao"] == pytest.approx(10.0)
    assert por_chave.loc["2026-03", "lucro"] == pytest.approx(100)
    assert por_chave.loc["2026-02", "comissao"] == 0
    assert por_chave.loc["2024-12", "mes"] == "dez/24"


def test_comissoes_por_tipo():
    linhas = [
        _linha("t1", 10),
        _linha("t2", 25),
        _linha("t1", 20),
        _linha("apagado", 3),
        _linha("t3", 0),
    ]
    nomes = {"t1": "Hardware", "t2": "Software", "t3": "Serviços"}

    resultado = comissoes_por_tipo(linhas, nomes)

    assert resultado == [
        {"tipo": "Hardware", "valor": 30.0},
        {"tipo": "Software", "valor": 25.0},
        {"tipo": "Outros", "valor": 3.0},
    ]
    assert comissoes_por_tipo([], nomes) == []


def test_listar_vendas_ordenacao_e_pesquisa():
    vendas = [
        _venda("FT 10", date(2026, 3, 1), cliente_id="c1", valor=100),
        _venda("FT 2", date(2026, 3, 5), cliente_id="c2", valor=300),
        _venda("NC 1", date(2026, 2, 1), cliente_id="c3", valor=50),
    ]
    nomes = {"c1": "Óptica Central", "c2": "Bárbara & Filhos", "c3": "Zeta Lda"}

    por_omissao = listar_vendas(vendas, nomes)
    assert [v.numero_fatura for v in por_omissao] == ["FT 2", "FT 10", "NC 1"], "Data de venda decrescente"

    por_cliente = listar_vendas(vendas, nomes, PreferenciaOrdenacao(chave="cliente", direcao="asc"))
    assert [nomes[v.cliente_id] for v in por_cliente] == ["Bárbara & Filhos", "Óptica Central", "Zeta Lda"]

    por_valor = listar_vendas(vendas, nomes, PreferenciaOrdenacao(chave="valor_total", direcao="desc"))
    assert [v.valor_total for v in por_valor] == [300, 100, 50]

    assert [v.numero_fatura for v in listar_vendas(vendas, nomes, termo_pesquisa="optica")] == ["FT 10"]
    assert [v.numero_fatura for v in listar_vendas(vendas, nomes, termo_pesquisa="nc")] == ["NC 1"]
    assert listar_vendas(vendas, nomes, termo_pesquisa="inexistente") == []


@pytest.mark.parametrize(
    "periodo, esperado",
    [
        ("este_mes", (date(2026, 2, 1), date(2026, 2, 28))),
        ("mes_passado", (date(2026, 1, 1), date(2026, 1, 31))),
        ("ano_corrente", (date(2026, 1, 1), date(2026, 12, 31))),
        ("personalizado", (date(2026, 2, 1), date(2026, 2, 17))),
    ],
)
def test_intervalo_relatorio(periodo, esperado):
    assert intervalo_relatorio(periodo, hoje=date(2026, 2, 17)) == esperado


def test_intervalo_relatorio_casos_limite():
    assert intervalo_relatorio("mes_passado", hoje=date(2026, 1, 10)) == (date(2025, 12, 1), date(2025, 12, 31))
    assert intervalo_relatorio(
        "personalizado", hoje=date(2026, 2, 17), inicio=date(2025, 6, 1), fim=date(2025, 6, 30)
    ) == (date(2025, 6, 1), date(2025, 6, 30))

    with pytest.raises(ValueError):
        intervalo_relatorio("personalizado", inicio=date(2026, 3, 1), fim=date(2026, 2, 1))

    with pytest.raises(ValueError):
        intervalo_relatorio("semana")


def test_filtros_e_totais_do_relatorio():
    vendas = [
        _venda("FT 1", date(2026, 3, 1), comissao=6, lucro=60, valor=360),
        _venda("FT 2", date(2026, 3, 31), comissao=4, lucro=40, valor=240),
        _venda("FT 3", date(2026, 4, 1), comissao=100, lucro=1000, valor=5000),
    ]
    pagamentos = [
        PagamentoRecebido(utilizador_id="u1", data_pagamento=date(2026, 3, 15), valor=8, periodo_referencia="Março 2026"),
        PagamentoRecebido(utilizador_id="u1", data_pagamento=date(2026, 2, 28), valor=50, periodo_referencia="Fevereiro 2026"),
    ]
    inicio, fim = intervalo_relatorio("este_mes", hoje=date(2026, 3, 10))

    no_mes = filtrar_vendas_intervalo(vendas, inicio, fim)
    assert [v.numero_fatura for v in no_mes] == ["FT 2", "FT 1"]

    totais = calcular_totais_relatorio(no_mes, filtrar_pagamentos_intervalo(pagamentos, inicio, fim))
    assert totais.total_vendido == pytest.approx(600)
    assert totais.total_lucro == pytest.approx(100)
    assert totais.total_comissao == pytest.approx(10)
    assert totais.total_recebido == pytest.approx(8)
    assert totais.margem_media == pytest.approx(100 / 600 * 100)

    assert calcular_totais_relatorio([], []).margem_media == 0


def test_linhas_exportacao():
    venda = _venda("FT 1", date(2026, 3, 1), estado="pago")
    venda = venda.model_copy(update={"id": "v1"})
    linhas = [
        _linha(
            "t1",
            6,
            metodo_calculo="margem_custo",
            lucro_manual=None,
            preco_custo=100,
            percentagem_custo=20,
            quantidade=3,
            lucro_calculado=60,
            percentagem_comissao_snapshot=10,
            artigo="Servidor",
        ),
        _linha("t2", 1.2367, lucro_manual=12.3456, lucro_calculado=12.3456, percentagem_comissao_snapshot=10, artigo="Suporte"),
        _linha("t1", 99, venda_id="outra"),
    ]

    df = criar_linhas_exportacao([venda], linhas, {"c1": "Empresa Lda"})

    assert list(df.columns) == COLUNAS_EXPORTACAO
    assert len(df) == 2
    servidor = df.iloc[0]
    assert servidor["DATA"] == date(2026, 3, 1)
    assert servidor["Cliente"] == "Empresa Lda"
    assert servidor["FATURA"] == "FT 1"
    assert servidor["CUSTO"] == pytest.approx(100)
    assert servidor["NEGÓCIO FECHADO"] == "Servidor"
    assert servidor["VALOR"] == pytest.approx(360)
    assert servidor["Valor/Comiss"] == pytest.approx(60)
    assert servidor["COMISSÃO (%)"] == pytest.approx(10)
    assert servidor["COMISSÃO TOTAL"] == pytest.approx(6)
    assert servidor["PAGO CO"] == "Pago"

    suporte = df.iloc[1]
    assert suporte["CUSTO"] == 0
    assert suporte["Valor/Comiss"] == pytest.approx(12.35)
    assert suporte["COMISSÃO TOTAL"] == pytest.approx(1.24)

    assert criar_linhas_exportacao([], [], {}).empty


def test_exportar_excel_estiliza_folha(tmp_path):
    venda = _venda("FT 1", date(2026, 3, 1), estado="pago").model_copy(update={"id": "v1"})
    linhas = [_linha("t1", 1, lucro_calculado=10, percentagem_comissao_snapshot=10, artigo="Suporte")]
    df = criar_linhas_exportacao([venda], linhas, {"c1": "Empresa Lda"})
    caminho = str(tmp_path / "exportacoes" / "relatorio.xlsx")

    assert exportar_excel(df, caminho) == caminho

    ws = load_workbook(caminho)["RELATORIO"]
    assert [c.value for c in ws[1]] == COLUNAS_EXPORTACAO
    assert ws["C2"].value == "FT 1"
    assert ws["A1"].font.bold
    assert ws["A2"].fill.start_color.rgb.endswith("E3F2FD")
    assert ws["I2"].number_format == '#,##0.00 "€"'
    assert ws.freeze_panes == "A2"


def test_estilizar_ficheiro_inexistente(tmp_path):
    assert style_output_workbook(str(tmp_path / "nao_existe.xlsx")) is False
