"""
Testes do repositório de registos (CRUD, filtros, substituição atómica de
linhas e persistência em Excel).
"""

import os
import sys
from datetime import date

import pytest

# Adicionar o diretório raiz ao path para importar os módulos
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from comissoes.erros import ClienteComVendas, LucroInvalido, RegistoNaoEncontrado
from comissoes.estado.repositorio import RepositorioRegistos
from comissoes.modelos import (
    Alerta,
    Cliente,
    EstadoVenda,
    LinhaVenda,
    PagamentoRecebido,
    PeriodoComissao,
    TipoAlerta,
    TipoArtigo,
    Venda,
)


def _repositorio_com_venda():
    repositorio = RepositorioRegistos()
    repositorio.inserir("tipos_artigo", TipoArtigo(id="t1", utilizador_id="u1", nome="Hardware", percentagem_comissao=10))
    repositorio.inserir("clientes", Cliente(id="c1", utilizador_id="u1", nome="Empresa Lda"))
    repositorio.inserir(
        "vendas",
        Venda(id="v1", utilizador_id="u1", cliente_id="c1", numero_fatura="FT 1", data_venda=date(2026, 3, 1)),
    )
    return repositorio


def _linha(**campos):
    dados = {
        "venda_id": "v1",
        "artigo": "Servidor",
        "tipo_artigo_id": "t1",
        "quantidade": 3,
        "metodo_calculo": "margem_custo",
        "preco_custo": 100,
        "percentagem_custo": 20,
        "percentagem_comissao_snapshot": 10,
    }
    dados.update(campos)
    return LinhaVenda(**dados)


def test_inserir_obter_e_dono():
    repositorio = _repositorio_com_venda()

    venda = repositorio.obter("vendas", "v1")
    assert isinstance(venda, Venda)
    assert venda.data_venda == date(2026, 3, 1)
    assert repositorio.obter("vendas", "v1", utilizador_id="u1").id == "v1"

    with pytest.raises(RegistoNaoEncontrado):
        repositorio.obter("vendas", "v1", utilizador_id="outro")

    with pytest.raises(RegistoNaoEncontrado):
        repositorio.obter("vendas", "nao-existe")

    with pytest.raises(ValueError):
        repositorio.inserir("vendas", venda)


def test_atualizar_valida_o_resultado():
    repositorio = _repositorio_com_venda()

    atualizada = repositorio.atualizar("vendas", "v1", estado="pago")
    assert atualizada.estado == EstadoVenda.PAGO
    assert repositorio.obter("vendas", "v1").estado == EstadoVenda.PAGO

    with pytest.raises(ValueError):
        repositorio.atualizar("vendas", "v1", estado="cancelado")


def test_selecionar_com_filtros_e_ordem():
    repositorio = _repositorio_com_venda()
    for numero, dia, estado in [("FT 2", 5, "pago"), ("FT 3", 2, "parcial")]:
        repositorio.inserir(
            "vendas",
            Venda(utilizador_id="u1", cliente_id="c1", numero_fatura=numero, data_venda=date(2026, 3, dia), estado=estado),
        )
    repositorio.inserir(
        "vendas",
        Venda(utilizador_id="u2", cliente_id="c9", numero_fatura="FT X", data_venda=date(2026, 3, 9)),
    )

    todas = repositorio.selecionar("vendas", utilizador_id="u1", ordenar_por="data_venda", ascendente=False)
    assert [v.numero_fatura for v in todas] == ["FT 2", "FT 3", "FT 1"]

    nao_pagas = repositorio.selecionar(
        "vendas", utilizador_id="u1", filtros={"estado": [EstadoVenda.PENDENTE, EstadoVenda.PARCIAL]}
    )
    assert {v.numero_fatura for v in nao_pagas} == {"FT 1", "FT 3"}

    assert repositorio.selecionar("pagamentos_recebidos", utilizador_id="u1") == []


def test_eliminar_cliente_com_vendas_e_restrito():
    repositorio = _repositorio_com_venda()

    with pytest.raises(ClienteComVendas) as excinfo:
        repositorio.eliminar("clientes", "c1")
    assert excinfo.value.total_vendas == 1

    repositorio.eliminar("vendas", "v1")
    repositorio.eliminar("clientes", "c1")
    assert repositorio.selecionar("clientes", utilizador_id="u1") == []


def test_eliminar_venda_elimina_linhas():
    repositorio = _repositorio_com_venda()
    repositorio.substituir_linhas_venda("v1", [_linha(), _linha(artigo="Disco")])
    assert len(repositorio.selecionar("linhas_venda", utilizador_id="u1")) == 2

    repositorio.eliminar("vendas", "v1")

    assert repositorio.selecionar("linhas_venda") == []


def test_substituir_linhas_recalcula_totais():
    repositorio = _repositorio_com_venda()

    venda, linhas = repositorio.substituir_linhas_venda("v1", [_linha()])
    assert venda.comissao_total == pytest.approx(6)
    assert venda.lucro_total == pytest.approx(60)
    assert venda.valor_total == pytest.approx(360)
    assert repositorio.obter("vendas", "v1").comissao_total == pytest.approx(6)

    # substituir por outra linha remove a anterior
    venda, _ = repositorio.substituir_linhas_venda("v1", [_linha(quantidade=1)])
    assert venda.comissao_total == pytest.approx(2)
    assert len(repositorio.selecionar("linhas_venda", filtros={"venda_id": "v1"})) == 1


def test_substituir_linhas_e_atomico():
    repositorio = _repositorio_com_venda()
    repositorio.substituir_linhas_venda("v1", [_linha()])

    with pytest.raises(LucroInvalido):
        repositorio.substituir_linhas_venda("v1", [_linha(artigo="Novo"), _linha(percentagem_desconto=90)])

    linhas = repositorio.selecionar("linhas_venda", filtros={"venda_id": "v1"})
    assert [l.artigo for l in linhas] == ["Servidor"], "Linhas anteriores devem ser repostas"
    assert repositorio.obter("vendas", "v1").comissao_total == pytest.approx(6)


def test_existe_alerta_nao_lido_por_contexto():
    repositorio = _repositorio_com_venda()
    alerta = repositorio.inserir(
        "alertas",
        Alerta(utilizador_id="u1", tipo=TipoAlerta.COBRANCA, mensagem="x", dados_contexto={"venda_id": "v1"}),
    )

    assert repositorio.existe_alerta_nao_lido("u1", TipoAlerta.COBRANCA, "venda_id", "v1")
    assert not repositorio.existe_alerta_nao_lido("u1", TipoAlerta.COBRANCA, "venda_id", "v2")
    assert not repositorio.existe_alerta_nao_lido("u1", TipoAlerta.DIVERGENCIA)

    repositorio.atualizar("alertas", alerta.id, lido=True)
    assert not repositorio.existe_alerta_nao_lido("u1", TipoAlerta.COBRANCA, "venda_id", "v1")


def test_guardar_e_carregar_excel(tmp_path):
    repositorio = _repositorio_com_venda()
    repositorio.substituir_linhas_venda("v1", [_linha()])
    repositorio.atualizar(
        "vendas",
        "v1",
        estado="pago",
        comissao_recebida_paga=True,
        periodo_comissao_recebida=PeriodoComissao(ano=2026, mes=3),
    )
    repositorio.inserir(
        "pagamentos_recebidos",
        PagamentoRecebido(utilizador_id="u1", data_pagamento=date(2026, 3, 20), valor=200, periodo_referencia="Março 2026"),
    )
    repositorio.inserir(
        "alertas",
        Alerta(utilizador_id="u1", tipo="cobranca", mensagem="Fatura FT 1", dados_contexto={"venda_id": "v1", "dias_atraso": 40}),
    )

    caminho = str(tmp_path / "dados" / "COMISSOES.xlsx")
    repositorio.guardar(caminho)
    assert os.path.exists(caminho)

    novo = RepositorioRegistos()
    assert novo.carregar(caminho)

    venda = novo.obter("vendas", "v1")
    assert venda.periodo_comissao_recebida == PeriodoComissao(ano=2026, mes=3)
    assert venda.comissao_recebida_paga is True
    assert venda.comissao_total == pytest.approx(6)

    linhas = novo.selecionar("linhas_venda", utilizador_id="u1")
    assert len(linhas) == 1 and linhas[0].percentagem_custo == pytest.approx(20)
    assert linhas[0].lucro_manual is None

    alertas = novo.selecionar("alertas", utilizador_id="u1")
    assert alertas[0].dados_contexto == {"venda_id": "v1", "dias_atraso": 40}

    assert novo.selecionar("pagamentos_recebidos", utilizador_id="u1")[0].valor == pytest.approx(200)
    assert novo.obter("clientes", "c1").nif is None


def test_carregar_ficheiro_inexistente(tmp_path):
    repositorio = _repositorio_com_venda()

    assert not repositorio.carregar(str(tmp_path / "nao_existe.xlsx"))
    assert repositorio.obter("vendas", "v1").id == "v1", "Estado atual mantém-se"


def test_carregar_mantem_textos_numericos_como_texto(tmp_path):
    repositorio = RepositorioRegistos()
    repositorio.inserir(
        "clientes",
        Cliente(id="c1", utilizador_id="u1", nome="Empresa Lda", nif="501234567", telefone="912345678"),
    )
    repositorio.inserir(
        "vendas",
        Venda(id="v1", utilizador_id="u1", cliente_id="c1", numero_fatura="2026001", data_venda=date(2026, 3, 1)),
    )
    caminho = str(tmp_path / "dados.xlsx")
    repositorio.guardar(caminho)

    novo = RepositorioRegistos()
    assert novo.carregar(caminho) is True

    cliente = novo.obter("clientes", "c1", "u1")
    assert cliente.nif == "501234567"
    assert cliente.telefone == "912345678"
    assert cliente.email is None
    assert novo.obter("vendas", "v1").numero_fatura == "2026001"


def test_substituir_linhas_com_cabecalho_reverte_tudo():
    repositorio = _repositorio_com_venda()
    repositorio.substituir_linhas_venda("v1", [_linha()])

    with pytest.raises(LucroInvalido):
        repositorio.substituir_linhas_venda(
            "v1", [_linha(percentagem_desconto=90)], numero_fatura="FT 99"
        )

    venda = repositorio.obter("vendas", "v1")
    assert venda.numero_fatura == "FT 1"
    assert venda.comissao_total == pytest.approx(6)
