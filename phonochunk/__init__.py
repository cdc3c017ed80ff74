"""phonochunk splits text into phoneme-token chunks that fit a speech model's
input budget. The main entry points live in phonochunk.text.chunker.
"""
