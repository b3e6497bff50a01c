from canvas_toolkit.config import ConfigManager


def test_singleton_until_reset():
    first = ConfigManager()
    assert ConfigManager() is first
    ConfigManager.reset()
    assert ConfigManager() is not first


def test_packaged_defaults_loaded():
    config = ConfigManager()
    element_defaults = config.get_element_defaults()
    assert element_defaults["types"]["columns"]["column_count"] == 2
    assert element_defaults["root_props"]["marginTop"] == 8
    assert config.get_document_defaults()["settings"]["title"] == "My Form"
    assert config.get_logging_config()["version"] == 1


def test_user_config_files_are_created(isolated_config):
    ConfigManager()
    for name in ("element_defaults.yml", "document_defaults.yml", "logging.yml"):
        assert (isolated_config / name).exists()


def test_user_overrides_replace_top_level_sections(isolated_config):
    isolated_config.mkdir(parents=True, exist_ok=True)
    (isolated_config / "document_defaults.yml").write_text(
        "settings:\n  title: Custom\n", encoding="utf-8"
    )
    config = ConfigManager()
    assert config.get_document_defaults()["settings"] == {"title": "Custom"}
    # sections absent from the override keep their packaged value
    assert config.get_document_defaults()["project_types"] == ["form", "email", "website"]


def test_invalid_user_yaml_is_ignored(isolated_config):
    isolated_config.mkdir(parents=True, exist_ok=True)
    (isolated_config / "element_defaults.yml").write_text("types: [unclosed\n", encoding="utf-8")
    config = ConfigManager()
    assert config.get_element_defaults()["types"]["menu"]["menu_items"][0]["label"] == "Home"
