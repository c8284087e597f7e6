"""
Cálculo de lucro por linha de venda.

Três métodos mutuamente exclusivos:
1. Lucro manual (lucro por unidade indicado pelo utilizador)
2. Margem sobre preço de custo
3. Margem sobre preço de venda

Sem arredondamentos: os valores só são arredondados na apresentação.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from comissoes.erros import PercentagemInvalida, QuantidadeInvalida
from comissoes.modelos import LinhaVenda, MetodoCalculo
from comissoes.utils.logging import ValidationLogger


logger = logging.getLogger(__name__)


@dataclass
class DadosCalculoLucro:
    quantidade: float
    metodo_calculo: Optional[Any]

    lucro_manual: Optional[float] = None

    preco_custo: Optional[float] = None
    percentagem_custo: Optional[float] = None

    preco_venda: Optional[float] = None
    percentagem_venda: Optional[float] = None

    percentagem_desconto: Optional[float] = None

    @classmethod
    def da_linha(cls, linha: LinhaVenda) -> "DadosCalculoLucro":
        return cls(
            quantidade=linha.quantidade,
            metodo_calculo=linha.metodo_calculo,
            lucro_manual=linha.lucro_manual,
            preco_custo=linha.preco_custo,
            percentagem_custo=linha.percentagem_custo,
            preco_venda=linha.preco_venda,
            percentagem_venda=linha.percentagem_venda,
            percentagem_desconto=linha.percentagem_desconto,
        )


@dataclass
class ResultadoLucro:
    """
    Resultado do cálculo de uma linha.

    `preco_venda_unitario` é o preço unitário base (antes do desconto).
    `metodo_aplicado` é None quando os dados do método estão incompletos e o
    resultado é o fallback a zero.
    """

    preco_venda_unitario: float = 0.0
    lucro_linha: float = 0.0
    total_venda_linha: float = 0.0
    total_custo_linha: float = 0.0
    metodo_aplicado: Optional[MetodoCalculo] = None

    @property
    def completo(self) -> bool:
        return self.metodo_aplicado is not None


@dataclass
class ResultadoValidacao:
    valido: bool
    erros: Dict[str, str] = field(default_factory=dict)


def _preenchido(valor) -> bool:
    return valor is not None and not pd.isna(valor)


def _metodo(valor) -> Optional[MetodoCalculo]:
    if valor is None:
        return None
    try:
        return MetodoCalculo(valor)
    except ValueError:
        return None


def _validar_percentagem(valor: float, campo: str):
    if valor < 0 or valor > 100:
        raise PercentagemInvalida(campo, valor)


def calcular_lucro_manual(lucro_manual: float, quantidade: float) -> float:
    """Lucro Total = Lucro Manual × Quantidade"""
    return lucro_manual * quantidade


def calcular_lucro_margem_custo(
    preco_custo: float, percentagem_custo: float, quantidade: float
) -> Tuple[float, float]:
    """
    Margem sobre preço de custo.

    Lucro Unitário = PC × (Percentagem ÷ 100)
    Lucro Total = Lucro Unitário × Quantidade
    PV = PC + Lucro Unitário

    Returns:
        (lucro_total, preco_venda_unitario)
    """
    lucro_unitario = preco_custo * (percentagem_custo / 100)
    return lucro_unitario * quantidade, preco_custo + lucro_unitario


def calcular_lucro_margem_venda(
    preco_venda: float, percentagem_venda: float, quantidade: float
) -> Tuple[float, float]:
    """
    Margem sobre preço de venda.

    Lucro Unitário = PV × (Percentagem ÷ 100)
    Lucro Total = Lucro Unitário × Quantidade
    PC = PV - Lucro Unitário

    Returns:
        (lucro_total, preco_custo_unitario)
    """
    lucro_unitario = preco_venda * (percentagem_venda / 100)
    return lucro_unitario * quantidade, preco_venda - lucro_unitario


def calcular_lucro_linha(dados: DadosCalculoLucro) -> ResultadoLucro:
    """
    Calcula o lucro de uma linha usando estritamente o método escolhido.

    O desconto é subtraído ao lucro como percentagem do valor de venda base da
    linha. Na margem sobre venda o desconto incide diretamente sobre
    `preco_venda × quantidade`.

    Args:
        dados: Quantidade, método e campos do método

    Returns:
        ResultadoLucro; a zeros se os campos do método estiverem incompletos

    Raises:
        QuantidadeInvalida: quantidade <= 0 ou ausente
        PercentagemInvalida: margem ou desconto fora de [0, 100]
    """
    quantidade = dados.quantidade
    if not _preenchido(quantidade) or quantidade <= 0:
        raise QuantidadeInvalida(quantidade)

    desconto = dados.percentagem_desconto if _preenchido(dados.percentagem_desconto) else 0.0
    _validar_percentagem(desconto, "percentagem_desconto")
    fator_desconto = desconto / 100

    metodo = _metodo(dados.metodo_calculo)

    if metodo == MetodoCalculo.MANUAL and _preenchido(dados.lucro_manual):
        # sem preço de custo, o preço base é o próprio lucro unitário
        custo_unitario = dados.preco_custo if _preenchido(dados.preco_custo) else 0.0
        preco_base = custo_unitario + dados.lucro_manual

        lucro = calcular_lucro_manual(dados.lucro_manual, quantidade)
        if fator_desconto:
            lucro -= (preco_base * quantidade) * fator_desconto

        return ResultadoLucro(
            preco_venda_unitario=preco_base,
            lucro_linha=lucro,
            total_venda_linha=preco_base * (1 - fator_desconto) * quantidade,
            total_custo_linha=custo_unitario * quantidade,
            metodo_aplicado=metodo,
        )

    if (
        metodo == MetodoCalculo.MARGEM_CUSTO
        and _preenchido(dados.preco_custo)
        and _preenchido(dados.percentagem_custo)
    ):
        _validar_percentagem(dados.percentagem_custo, "percentagem_custo")
        lucro, preco_base = calcular_lucro_margem_custo(
            dados.preco_custo, dados.percentagem_custo, quantidade
        )
        if fator_desconto:
            lucro -= (preco_base * quantidade) * fator_desconto

        return ResultadoLucro(
            preco_venda_unitario=preco_base,
            lucro_linha=lucro,
            total_venda_linha=preco_base * (1 - fator_desconto) * quantidade,
            total_custo_linha=dados.preco_custo * quantidade,
            metodo_aplicado=metodo,
        )

    if (
        metodo == MetodoCalculo.MARGEM_VENDA
        and _preenchido(dados.preco_venda)
        and _preenchido(dados.percentagem_venda)
    ):
        _validar_percentagem(dados.percentagem_venda, "percentagem_venda")
        lucro, custo_unitario = calcular_lucro_margem_venda(
            dados.preco_venda, dados.percentagem_venda, quantidade
        )
        # o desconto incide sobre o valor de venda, não sobre o lucro unitário
        if fator_desconto:
            lucro -= (dados.preco_venda * quantidade) * fator_desconto

        return ResultadoLucro(
            preco_venda_unitario=dados.preco_venda,
            lucro_linha=lucro,
            total_venda_linha=dados.preco_venda * (1 - fator_desconto) * quantidade,
            total_custo_linha=custo_unitario * quantidade,
            metodo_aplicado=metodo,
        )

    logger.debug("[LUCRO] Dados incompletos para o método %s; lucro a zero", dados.metodo_calculo)
    return ResultadoLucro()


def validar_dados_calculo(
    dados: DadosCalculoLucro,
    validation_logger: Optional[ValidationLogger] = None,
) -> ResultadoValidacao:
    """
    Verifica se os dados chegam para o método escolhido, campo a campo.

    Não lança exceções: devolve todas as mensagens para o formulário mostrar
    junto de cada campo.

    Args:
        dados: Dados da linha
        validation_logger: Se indicado, cada erro é registado como AVISO

    Returns:
        ResultadoValidacao com `erros` no formato {campo: mensagem}
    """
    erros: Dict[str, str] = {}

    if not _preenchido(dados.quantidade) or dados.quantidade <= 0:
        erros["quantidade"] = "Quantidade deve ser maior que zero"

    if _preenchido(dados.percentagem_desconto) and not 0 <= dados.percentagem_desconto <= 100:
        erros["percentagem_desconto"] = "Percentagem de desconto deve estar entre 0 e 100"

    metodo = _metodo(dados.metodo_calculo)

    if metodo == MetodoCalculo.MANUAL:
        if not _preenchido(dados.lucro_manual):
            erros["lucro_manual"] = "Lucro manual é obrigatório para este método"
        elif dados.lucro_manual < 0:
            erros["lucro_manual"] = "Lucro manual não pode ser negativo"

    elif metodo == MetodoCalculo.MARGEM_CUSTO:
        if not _preenchido(dados.preco_custo):
            erros["preco_custo"] = "Preço de custo é obrigatório para este método"
        elif dados.preco_custo < 0:
            erros["preco_custo"] = "Preço de custo não pode ser negativo"
        if not _preenchido(dados.percentagem_custo):
            erros["percentagem_custo"] = "Percentagem sobre custo é obrigatória para este método"
        elif not 0 <= dados.percentagem_custo <= 100:
            erros["percentagem_custo"] = "Percentagem sobre custo deve estar entre 0 e 100"

    elif metodo == MetodoCalculo.MARGEM_VENDA:
        if not _preenchido(dados.preco_venda):
            erros["preco_venda"] = "Preço de venda é obrigatório para este método"
        elif dados.preco_venda < 0:
            erros["preco_venda"] = "Preço de venda não pode ser negativo"
        if not _preenchido(dados.percentagem_venda):
            erros["percentagem_venda"] = "Percentagem sobre venda é obrigatória para este método"
        elif not 0 <= dados.percentagem_venda <= 100:
            erros["percentagem_venda"] = "Percentagem sobre venda deve estar entre 0 e 100"

    else:
        erros["metodo_calculo"] = "Método de cálculo inválido"

    if validation_logger is not None:
        for campo, mensagem in erros.items():
            validation_logger.aviso(mensagem, {"campo": campo})

    return ResultadoValidacao(valido=not erros, erros=erros)


def determinar_metodo_utilizado(dados: DadosCalculoLucro) -> Optional[MetodoCalculo]:
    """
    Deduz o método a partir dos campos preenchidos, por prioridade:
    lucro manual > margem sobre custo > margem sobre venda.
    """
    if _preenchido(dados.lucro_manual):
        return MetodoCalculo.MANUAL

    if _preenchido(dados.preco_custo) and _preenchido(dados.percentagem_custo):
        return MetodoCalculo.MARGEM_CUSTO

    if _preenchido(dados.preco_venda) and _preenchido(dados.percentagem_venda):
        return MetodoCalculo.MARGEM_VENDA

    return None
