from shared.settings import Settings


def test_defaults():
    settings = Settings()
    assert settings.store_name == "Dietanic"
    assert settings.currency == "INR"
    assert settings.tax_registered is False
    assert settings.tax_rate == 0.05
    assert settings.free_shipping_threshold == 500.0
    assert settings.poll_interval == 5.0


def test_from_env_with_empty_environment_matches_defaults():
    assert Settings.from_env({}) == Settings()


def test_from_env_reads_prefixed_variables():
    settings = Settings.from_env(
        {
            "STOREFRONT_STORE_NAME": "Greens",
            "STOREFRONT_TAX_REGISTERED": "yes",
            "STOREFRONT_TAX_RATE": "0.18",
            "STOREFRONT_STORE_STATE": "Karnataka",
            "STOREFRONT_FREE_SHIPPING_THRESHOLD": "999",
            "STOREFRONT_POLL_INTERVAL": "0.5",
            "UNRELATED": "ignored",
        }
    )

    assert settings.store_name == "Greens"
    assert settings.tax_registered is True
    assert settings.tax_rate == 0.18
    assert settings.store_state == "Karnataka"
    assert settings.free_shipping_threshold == 999.0
    assert settings.poll_interval == 0.5


def test_tax_registered_is_false_for_other_values():
    assert Settings.from_env({"STOREFRONT_TAX_REGISTERED": "no"}).tax_registered is False
    assert Settings.from_env({"STOREFRONT_TAX_REGISTERED": "TRUE"}).tax_registered is True
