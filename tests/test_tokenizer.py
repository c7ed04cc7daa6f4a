from minisearch.index.tokenizer import tokenize


def test_splits_on_whitespace_and_lowercases():
    assert tokenize("Hello  World\tFOO\nbar") == ["hello", "world", "foo", "bar"]


def test_strips_surrounding_punctuation_only():
    assert tokenize("(Hello), world! don't e-mail...") == ["hello", "world", "don't", "e-mail"]


def test_drops_tokens_without_alphanumerics():
    assert tokenize("--- ... !!! ?") == []
    assert tokenize("a - b") == ["a", "b"]


def test_keeps_digits_and_unicode_letters():
    assert tokenize("Café ÜBER 2024 v2.0") == ["café", "über", "2024", "v2.0"]


def test_empty_text():
    assert tokenize("") == []
    assert tokenize("   \n\t ") == []


def test_tokenizing_is_pure():
    text = "The quick, brown fox; jumps over the lazy dog!"
    assert tokenize(text) == tokenize(text)


def test_single_lowercase_word_is_unchanged():
    for word in ["rust", "abc123", "42"]:
        assert tokenize(word) == [word]


def test_tokenize_is_idempotent_on_its_output():
    terms = tokenize("Search ENGINES, indexes & (ranking)!")
    assert tokenize(" ".join(terms)) == terms
