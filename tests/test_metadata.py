from __future__ import annotations

from lingokey.metadata import ElementMetadata, MetadataStore
from lingokey.scene import TextNode


def make_text(characters="Submit"):
    return TextNode("9:1", "t", characters)


def test_fresh_node_reads_as_unset():
    metadata = MetadataStore().read(make_text())

    assert metadata == ElementMetadata()
    assert metadata.is_empty


def test_original_text_is_write_once():
    store = MetadataStore()
    node = make_text()

    assert store.remember_original(node, "Submit") is True
    assert store.remember_original(node, "Envoyer") is False
    assert store.original_text(node) == "Submit"
    assert node.get_plugin_data("originalText") == "Submit"


def test_key_is_overwritten():
    store = MetadataStore()
    node = make_text()

    store.write_key(node, "home.button.submit")
    store.write_key(node, "home.button.send")

    assert store.key(node) == "home.button.send"


def test_manual_override_survives_automated_writes():
    store = MetadataStore()
    node = make_text()

    store.mark_manual(node, "fr", "Valider")
    store.write_translation(node, "fr", "Soumettre")
    metadata = store.read(node)

    assert metadata.translations == {"fr": "Soumettre"}
    assert metadata.manual_flags == {"fr"}
    assert node.get_plugin_data("isManual-fr") == "true"


def test_read_covers_configured_languages_only():
    store = MetadataStore(["fr", "de"])
    node = make_text()
    store.write_translation(node, "fr", "Soumettre")
    store.write_translation(node, "ja", "送信")

    assert store.read(node).translations == {"fr": "Soumettre"}
    assert node.get_plugin_data("translation-ja") == "送信"


def test_clear_resets_every_field():
    store = MetadataStore()
    node = make_text()
    store.remember_original(node, "Submit")
    store.write_key(node, "home.button.submit")
    store.mark_manual(node, "de", "Senden")
    store.write_translation(node, "es", "Enviar")

    store.clear(node)

    assert store.read(node).is_empty
    assert node.plugin_data_keys() == []


def test_empty_string_is_the_unset_sentinel():
    store = MetadataStore()
    node = make_text()
    store.write_key(node, "")

    assert store.key(node) is None
    assert store.remember_original(node, "") is True
    assert store.original_text(node) is None
