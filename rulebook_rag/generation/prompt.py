"""
Prompt construction for grounded rulebook answers
"""

from typing import Dict, List

SYSTEM_INSTRUCTION = (
    "Use the following pieces of context to answer the question at the end.\n"
    "Use only the given context to answer. If the answer is not contained in the "
    "context, say so explicitly rather than inventing one."
)

SYSTEM_TEMPLATE = """{instruction}
----------------
{context}"""


def build_system_prompt(context: str) -> str:
    return SYSTEM_TEMPLATE.format(instruction=SYSTEM_INSTRUCTION, context=context)


def build_rag_messages(question: str, context: str) -> List[Dict[str, str]]:
    """
    Instructions and context go in the system message; the raw question is
    the only user content.
    """
    return [
        {"role": "system", "content": build_system_prompt(context)},
        {"role": "user", "content": question},
    ]
