# ebookforge/services/prompts.py
from typing import Dict, List

from ebookforge.models import CHAPTER_COUNT

STRUCTURE_SYSTEM = (
    "Você é especialista em marketing digital e na criação de infoprodutos. "
    "Responda sempre com JSON válido."
)

CHAPTER_SYSTEM = (
    "Você é um escritor experiente de e-books práticos. "
    "Escreva em português claro, em parágrafos, sem markdown."
)

# JSON schema sent with the structure request
STRUCTURE_SCHEMA: Dict = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "chapterTitles": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": CHAPTER_COUNT,
            "maxItems": CHAPTER_COUNT,
        },
    },
    "required": ["title", "description", "chapterTitles"],
    "additionalProperties": False,
}


def structure_prompt(topic: str) -> str:
    return (
        f'Crie a estrutura de um e-book sobre o tema: "{topic}".\n'
        "Devolva um objeto JSON com:\n"
        '1. "title": um título chamativo e vendedor.\n'
        '2. "description": uma descrição de venda persuasiva com 2-3 parágrafos, '
        "destacando os benefícios e o que o leitor vai aprender.\n"
        f'3. "chapterTitles": exatamente {CHAPTER_COUNT} títulos de capítulos, '
        "em ordem lógica e progressiva, do básico ao avançado."
    )


def chapter_prompt(topic: str, ebook_title: str, chapter_title: str) -> str:
    return (
        f'Você domina o tema "{topic}".\n'
        f'Escreva o conteúdo completo do capítulo "{chapter_title}" do e-book "{ebook_title}".\n'
        "O texto deve ser detalhado, prático e ter pelo menos 500 palavras. "
        "Use linguagem acessível e separe as ideias em parágrafos. Não use markdown."
    )


def cover_prompt(title: str, topic: str) -> str:
    return (
        f'Capa de e-book profissional e minimalista para o livro "{title}", sobre "{topic}". '
        "Design moderno, atraente e limpo, com gráficos abstratos. "
        "Não inclua nenhum texto, letra ou número na imagem. "
        "Formato retrato 3:4, visualmente impactante, adequado a um produto digital."
    )


def structure_messages(topic: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": STRUCTURE_SYSTEM},
        {"role": "user", "content": structure_prompt(topic)},
    ]


def chapter_messages(topic: str, ebook_title: str, chapter_title: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": CHAPTER_SYSTEM},
        {"role": "user", "content": chapter_prompt(topic, ebook_title, chapter_title)},
    ]
