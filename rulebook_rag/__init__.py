"""
Rulebook question answering over a single reference document.
Chunks the rulebook, embeds it into an in-memory FAISS index and
answers questions with a grounded LLM prompt.
"""

__version__ = "0.1.0"
