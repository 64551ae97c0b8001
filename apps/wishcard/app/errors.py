from __future__ import annotations


class WishcardError(Exception):
    """Request-level failure rendered as ``{"error": message}``."""

    status_code: int = 500
    message: str = "Erro interno ao gerar a imagem da lista de desejos."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingParameter(WishcardError):
    status_code = 400
    message = "O parâmetro 'id' é obrigatório."


class WishlistNotFound(WishcardError):
    status_code = 404
    message = "Lista de desejos não encontrada ou vazia."


class WishlistEmpty(WishlistNotFound):
    message = "Nenhum item na lista de desejos."


class AcquisitionFailed(WishcardError):
    status_code = 500
    message = "Não foi possível baixar as imagens dos itens."
