"""
Exceções do motor de comissões.

Os calculadores só levantam exceções para valores numéricos inválidos.
Dados incompletos (rascunhos) nunca são erro: devolvem resultados a zero.
"""

from typing import Any, Optional


class ComissoesError(ValueError):
    """Erro base de todas as exceções do pacote."""


class QuantidadeInvalida(ComissoesError):
    """Quantidade nula, negativa ou ausente."""

    def __init__(self, quantidade: Any):
        self.quantidade = quantidade
        super().__init__(f"Quantidade deve ser maior que zero (recebido: {quantidade})")


class PercentagemInvalida(ComissoesError):
    """Percentagem (comissão, margem ou desconto) fora de [0, 100]."""

    def __init__(self, campo: str, valor: Any):
        self.campo = campo
        self.valor = valor
        super().__init__(f"{campo} deve estar entre 0 e 100 (recebido: {valor})")


class LucroInvalido(ComissoesError):
    """Lucro negativo usado no cálculo de comissão."""

    def __init__(self, lucro: float):
        self.lucro = lucro
        super().__init__(f"Lucro não pode ser negativo (recebido: {lucro})")


class MetodoIncompleto(ComissoesError):
    """
    Campos obrigatórios do método em falta.

    O calculador nunca a levanta; é levantada ao gravar uma venda com linhas
    que não passam a validação.
    """

    def __init__(self, campo: str, mensagem: str):
        self.campo = campo
        super().__init__(mensagem)


class RegistoNaoEncontrado(ComissoesError):
    """Registo inexistente no repositório (ou de outro utilizador)."""

    def __init__(self, colecao: str, registo_id: Optional[str]):
        self.colecao = colecao
        self.registo_id = registo_id
        super().__init__(f"Registo '{registo_id}' não encontrado em '{colecao}'")


class LiquidacaoInvalida(ComissoesError):
    """Tentativa de liquidar a comissão de uma venda que não está paga."""

    def __init__(self, venda_id: str, estado: Any):
        self.venda_id = venda_id
        self.estado = estado
        super().__init__(
            f"Venda {venda_id} não está em boa cobrança (estado: {estado}); "
            "só vendas pagas podem ter a comissão liquidada"
        )


class ClienteComVendas(ComissoesError):
    """Eliminação de um cliente ainda referenciado por vendas."""

    def __init__(self, cliente_id: str, total_vendas: int):
        self.cliente_id = cliente_id
        self.total_vendas = total_vendas
        super().__init__(
            f"Cliente {cliente_id} tem {total_vendas} venda(s) associada(s) e não pode ser eliminado"
        )
