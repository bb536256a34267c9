"""
Exceções das regras de estoque.
"""


class StockError(Exception):
    """Exceção genérica para erros de estoque"""
    pass


class NotFound(StockError):
    """Produto ou movimentação não existe"""
    pass


class InvalidUnit(StockError):
    """Unidade solicitada incompatível com a unidade do produto (volume x peso)"""
    pass


class InsufficientStock(StockError):
    """Saída maior que o estoque disponível (mais a tolerância)"""
    pass


class AlreadyDeleted(StockError):
    """Movimentação já excluída. Na exclusão é tratado como no-op, não como erro."""
    pass


class StoreError(StockError):
    """Falha de leitura ou escrita no banco"""
    pass


class PartialFailure(StockError):
    """
    Uma das escritas obrigatórias foi aplicada e a outra falhou.
    `rollback_succeeded` indica se a escrita de reversão funcionou.
    """

    def __init__(self, message: str, rollback_succeeded: bool = False):
        super().__init__(message)
        self.rollback_succeeded = rollback_succeeded
