"""
Utilitários partilhados: log de validação, normalização de texto, formatação
e estilo das folhas exportadas.
"""
