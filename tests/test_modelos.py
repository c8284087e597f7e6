"""
Testes dos modelos de dados (períodos, vendas e linhas).
"""

import os
import sys
from datetime import date

import pytest
from pydantic import ValidationError

# Adicionar o diretório raiz ao path para importar os módulos
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from comissoes.modelos import Cliente, EstadoVenda, LinhaVenda, PeriodoComissao, Venda


@pytest.mark.parametrize(
    "texto",
    ["Março 2026", "marco 2026", "MARÇO DE 2026", "2026-03", "03/2026", "3/2026"],
)
def test_periodo_de_rotulo(texto):
    periodo = PeriodoComissao.de_rotulo(texto)
    assert periodo.chave == (2026, 3)
    assert periodo.rotulo == "Março 2026"
    assert str(periodo) == "Março 2026"


@pytest.mark.parametrize("texto", ["", "Marzo 2026", "2026-13", "13/2026", "Março"])
def test_periodo_invalido(texto):
    with pytest.raises(ValueError):
        PeriodoComissao.de_rotulo(texto)


def test_periodo_de_data_e_igualdade():
    assert PeriodoComissao.de_data(date(2025, 12, 31)) == PeriodoComissao(ano=2025, mes=12)
    assert len({PeriodoComissao(ano=2026, mes=1), PeriodoComissao(ano=2026, mes=1)}) == 1


def test_venda_aceita_periodo_em_texto():
    venda = Venda(
        utilizador_id="u1",
        cliente_id="c1",
        numero_fatura=1234.0,
        data_venda="2026-03-10",
        estado="pago",
        comissao_recebida_paga=True,
        periodo_comissao_recebida="Abril 2026",
    )

    assert venda.numero_fatura == "1234"
    assert venda.estado == EstadoVenda.PAGO
    assert venda.periodo_comissao_recebida == PeriodoComissao(ano=2026, mes=4)

    sem_periodo = venda.model_copy(update={"periodo_comissao_recebida": None})
    assert sem_periodo.periodo_comissao_recebida is None
    assert Venda.model_validate({**venda.model_dump(), "periodo_comissao_recebida": " "}).periodo_comissao_recebida is None


def test_linha_valida_quantidade_e_desconto():
    base = {
        "venda_id": "v1",
        "artigo": "Licença",
        "tipo_artigo_id": "t1",
        "quantidade": 1,
        "metodo_calculo": "manual",
        "lucro_manual": 10,
    }

    assert LinhaVenda(**base, percentagem_desconto=None).percentagem_desconto == 0

    with pytest.raises(ValidationError):
        LinhaVenda(**{**base, "quantidade": 0})

    with pytest.raises(ValidationError):
        LinhaVenda(**base, percentagem_desconto=101)

    with pytest.raises(ValidationError):
        LinhaVenda(**{**base, "metodo_calculo": "desconhecido"})


def test_cliente_nome_obrigatorio():
    assert Cliente(utilizador_id="u1", nome="  Empresa Lda  ").nome == "Empresa Lda"

    with pytest.raises(ValidationError):
        Cliente(utilizador_id="u1", nome="   ")
