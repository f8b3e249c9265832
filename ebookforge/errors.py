# ebookforge/errors.py
"""
Error taxonomy for generation and export.

Every error carries a user-facing message (Portuguese, like the UI); the
orchestrator shows ``str(err)`` after a fixed prefix.
"""


class EbookError(Exception):
    default_message = "Ocorreu um erro desconhecido."

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class MissingCredentialError(EbookError):
    default_message = "A chave de API não foi fornecida. Por favor, insira sua chave no campo indicado."


class EmptyResponseError(EbookError):
    default_message = "A resposta da API está vazia ou malformada."


class ParseError(EbookError):
    default_message = "Não foi possível processar a estrutura do e-book. A resposta da API pode ter sido inválida."


class NoImageError(EbookError):
    default_message = "Não foi possível gerar a imagem da capa do e-book."


class RenderFailureError(EbookError):
    default_message = "Falha ao gerar o PDF."


class ExportNotReadyError(EbookError):
    default_message = "O e-book ainda não tem capa; aguarde o fim da geração para baixar o PDF."


class RunInProgressError(EbookError):
    default_message = "Já existe um e-book sendo gerado nesta sessão."


class ExportBusyError(EbookError):
    default_message = "O PDF já está sendo gerado."
