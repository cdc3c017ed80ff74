"""
Defines the default set of symbols a chunk may contain, used when no model
vocabulary is supplied.
"""

# The word separator, also a symbol of the vocabulary
SPACE = " "

# Punctuation marks kept as their own tokens in a chunk
_punctuation = ';:,.!?¡¿—…"«»“”()'

# IPA symbols as found in common IPA-based TTS vocabularies
ipa_symbols = (
    # Vowels
    "aeiouɑɐɒæəɘɚɛɜɝɞɨɪɔøɵɤʉʊyɶœɯʏʌᵻ"
    # Consonants
    "bβcçdðfɡɢɣhɦɧħɥjɟʝkʎlɭʟɬɫɮmɱnɳɲŋɴpɸqrɹɺɾɽɻʀʁsʂʃtʈθvʋⱱwʍxχzʐʒʑʔʕʢʡʙɕɖʜɰ"
    # Single-symbol affricates
    "ʧʤ"
    # Suprasegmentals
    "ˈˌːˑ"
    # Diacritics (modifier letters)
    "ʰʲʷˠˤ˞"
)

DEFAULT_VOCABULARY: frozenset[str] = frozenset(
    [SPACE] + list(_punctuation) + list(ipa_symbols)
)
