"""
Valida liquidações de comissões e resumos de reconciliação.
"""

from typing import Tuple, Union

from comissoes.modelos import EstadoVenda, PeriodoComissao, Venda


class ReconciliacaoValidator:
    """
    Valida dados e cálculos de reconciliação.
    """

    def __init__(self, tolerancia: float = 0.01) -> None:
        """
        Inicializa o validador.

        Args:
            tolerancia: Diferença máxima aceite nas verificações de consistência (€)
        """
        self.tolerancia = tolerancia

    def validar_liquidacao(self, venda: Venda) -> Tuple[bool, str]:
        """
        Verifica se a comissão de uma venda pode ser marcada como recebida.

        Só vendas em boa cobrança (pagas pelo cliente) são elegíveis.

        Returns:
            (valido: bool, mensagem: str)
        """
        if not venda.id:
            return False, "ID da venda ausente"

        if venda.estado != EstadoVenda.PAGO:
            return False, f"Venda {venda.numero_fatura} não está paga (estado: {venda.estado.value})"

        return True, "OK"

    def validar_periodo(self, periodo: Union[PeriodoComissao, str, None]) -> Tuple[bool, str]:
        """
        Verifica se o período indicado é utilizável numa liquidação.

        Returns:
            (valido: bool, mensagem: str)
        """
        if periodo is None:
            return False, "Período de recebimento ausente"

        if isinstance(periodo, PeriodoComissao):
            return True, "OK"

        try:
            PeriodoComissao.de_rotulo(periodo)
        except ValueError as e:
            return False, str(e)

        return True, "OK"

    def validar_resumo(self, resumo) -> Tuple[bool, str]:
        """
        Verifica a consistência de um resumo (diferenca = validada - recebida).

        Returns:
            (valido: bool, mensagem: str)
        """
        esperado = resumo.validada - resumo.recebida
        if abs(resumo.diferenca - esperado) > self.tolerancia:
            return (
                False,
                f"Cálculo inconsistente: diferenca={resumo.diferenca} diferente do esperado={esperado}",
            )

        for campo in ("pendente", "validada", "recebida"):
            if getattr(resumo, campo) < 0:
                return False, f"Valor negativo em '{campo}': {getattr(resumo, campo)}"

        return True, "OK"
