"""
Testes do cálculo de comissões, divergências e agrupamento por tipo.
"""

import os
import sys
from datetime import date

import pytest

# Adicionar o diretório raiz ao path para importar os módulos
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from comissoes.calculos.comissao import (
    agrupar_comissoes_por_tipo,
    calcular_comissao,
    calcular_comissao_pendente,
    calcular_comissao_validada,
    calcular_divergencia,
    deve_alertar_divergencia,
    simular_comissao,
    somar_comissoes,
)
from comissoes.erros import LucroInvalido, PercentagemInvalida
from comissoes.modelos import LinhaVenda, TipoArtigo, Venda


def _venda(comissao, estado="pendente"):
    return Venda(
        utilizador_id="u1",
        cliente_id="c1",
        numero_fatura="FT 1",
        data_venda=date(2026, 3, 1),
        estado=estado,
        comissao_total=comissao,
    )


def _linha(tipo_id, lucro, comissao, percentagem, quantidade=1):
    return LinhaVenda(
        venda_id="v1",
        artigo="Artigo",
        tipo_artigo_id=tipo_id,
        quantidade=quantidade,
        metodo_calculo="manual",
        lucro_manual=lucro / quantidade,
        lucro_calculado=lucro,
        comissao_calculada=comissao,
        percentagem_comissao_snapshot=percentagem,
    )


def test_calcular_comissao():
    assert calcular_comissao(60, 10) == pytest.approx(6)
    assert calcular_comissao(0, 50) == 0
    assert calcular_comissao(123.45, 0) == 0


def test_comissao_e_linear_no_lucro():
    for a, b, p in [(10, 20, 7.5), (0.33, 99.1, 12), (1000, 1, 100)]:
        assert calcular_comissao(a + b, p) == pytest.approx(calcular_comissao(a, p) + calcular_comissao(b, p))


def test_comissao_rejeita_valores_invalidos():
    with pytest.raises(LucroInvalido):
        calcular_comissao(-1, 10)

    with pytest.raises(PercentagemInvalida):
        calcular_comissao(100, 101)

    with pytest.raises(PercentagemInvalida):
        calcular_comissao(100, -0.5)


def test_somar_e_separar_por_boa_cobranca():
    vendas = [_venda(10, "pago"), _venda(5, "pendente"), _venda(2.5, "parcial")]

    assert somar_comissoes(vendas) == pytest.approx(17.5)
    assert calcular_comissao_validada(vendas) == pytest.approx(10)
    assert calcular_comissao_pendente(vendas) == pytest.approx(7.5)
    assert somar_comissoes([]) == 0


def test_divergencia_com_esperado_zero():
    divergencia = calcular_divergencia(0, 10)
    assert divergencia.percentagem == 0
    assert divergencia.divergencia == pytest.approx(10)
    assert divergencia.tem_divergencia, "Diferença de 10 € ultrapassa o limite de 5 €"

    assert not calcular_divergencia(0, 3).tem_divergencia


def test_divergencia_limites_percentagem_e_valor():
    pequena = calcular_divergencia(100, 104)
    assert pequena.percentagem == pytest.approx(4)
    assert not pequena.tem_divergencia

    assert calcular_divergencia(100, 94).tem_divergencia

    # 5 € exatos em 200 € (2,5%) ficam dentro da tolerância
    assert not calcular_divergencia(200, 195).tem_divergencia

    # 6% de 50 € são só 3 €, mas a percentagem ultrapassa o limite
    assert calcular_divergencia(50, 53).tem_divergencia

    assert deve_alertar_divergencia(100, 50)
    assert not deve_alertar_divergencia(100, 50, limite_percentagem=60, limite_valor=60)


def test_agrupar_por_tipo_media_simples():
    tipos = {"t1": TipoArtigo(id="t1", utilizador_id="u1", nome="Hardware", percentagem_comissao=10)}
    linhas = [
        _linha("t1", lucro=100, comissao=10, percentagem=10, quantidade=2),
        _linha("t1", lucro=900, comissao=180, percentagem=20, quantidade=1),
        _linha("t9", lucro=50, comissao=5, percentagem=10),
    ]

    grupos = agrupar_comissoes_por_tipo(linhas, tipos)

    assert [g.tipo_artigo_id for g in grupos] == ["t1", "t9"]
    hardware = grupos[0]
    assert hardware.tipo_artigo_nome == "Hardware"
    assert hardware.quantidade_linhas == 2
    assert hardware.total_vendas == pytest.approx(3)
    assert hardware.total_lucro == pytest.approx(1000)
    assert hardware.total_comissao == pytest.approx(190)
    assert hardware.percentagem_media == pytest.approx(15), "Média simples, não ponderada pelo lucro"
    assert grupos[1].tipo_artigo_nome == "Desconhecido"

    assert agrupar_comissoes_por_tipo([], tipos) == []


def test_simular_comissao():
    simulacao = simular_comissao(1234.5, 10)
    assert simulacao["comissao"] == pytest.approx(123.45)
    assert simulacao["comissao_formatada"] == "123,45 €"
