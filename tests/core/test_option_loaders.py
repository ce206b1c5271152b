"""
Tests for the provider and model option loaders
"""

import pytest
import httpx
from flowengine_chat.credentials import ChatModelCredential

def as_tuples(options):
    return [(o.name, o.value, o.description) for o in options]

@pytest.mark.asyncio
async def test_provider_options(node, gateway, credential, model_listing):
    """Test providers are resolved, sorted and capitalized"""
    gateway.models = (200, model_listing)

    options = await node.get_providers(credential)

    assert [(o.name, o.value) for o in options] == [
        ("All Providers", "all"),
        ("Anthropic", "anthropic"),
        ("Openai", "openai")
    ]

@pytest.mark.asyncio
async def test_listing_request(node, gateway, credential):
    await node.get_providers(credential)

    request = gateway.last_request
    assert request.method == "GET"
    assert str(request.url) == "https://gateway.test/api/v1/litellm/models"
    assert request.headers["Authorization"] == "Bearer fe-test-key"

@pytest.mark.asyncio
async def test_providers_are_deduplicated(node, gateway, credential):
    gateway.models = (200, {"data": [
        {"model_name": "gpt-4", "model_info": {"provider": "openai"}},
        {"model_name": "gpt-4o", "model_info": {"litellm_provider": "openai"}},
        {"model_name": "mistral-large", "model_info": {"provider": "mistral"}},
        {"model_name": "mystery"}
    ]})

    options = await node.get_providers(credential)

    assert [o.value for o in options] == ["all", "mistral", "openai"]

@pytest.mark.asyncio
async def test_provider_field_takes_precedence(node, gateway, credential):
    gateway.models = (200, {"data": [
        {"model_name": "m", "model_info": {"provider": "vertex", "litellm_provider": "google"}}
    ]})

    options = await node.get_providers(credential)

    assert [o.value for o in options] == ["all", "vertex"]

@pytest.mark.asyncio
async def test_display_name_keeps_rest_of_string(node, gateway, credential):
    gateway.models = (200, {"data": [{"model_name": "m", "model_info": {"provider": "openAI"}}]})

    options = await node.get_providers(credential)

    assert options[1].name == "OpenAI"

@pytest.mark.asyncio
async def test_model_options_for_provider(node, gateway, credential, model_listing):
    """Test a specific provider keeps exact matches only"""
    gateway.models = (200, model_listing)

    options = await node.get_models(credential, "openai")

    assert as_tuples(options) == [("gpt-4", "gpt-4", "Provider: openai")]

@pytest.mark.asyncio
@pytest.mark.parametrize("provider", ["all", ""])
async def test_model_options_unfiltered(node, gateway, credential, model_listing, provider):
    gateway.models = (200, model_listing)

    options = await node.get_models(credential, provider)

    assert as_tuples(options) == [
        ("claude-3", "claude-3", "Provider: anthropic"),
        ("gpt-4", "gpt-4", "Provider: openai")
    ]

@pytest.mark.asyncio
async def test_model_options_filtering_and_sorting(node, gateway, credential):
    """Test nameless entries are dropped and names sort case-insensitively"""
    gateway.models = (200, {"data": [
        {"model_name": "b-model", "model_info": {}},
        {"model_name": "", "model_info": {"provider": "openai"}},
        {"model_info": {"provider": "openai"}},
        {"model_name": "alpha-2"},
        {"model_name": "Alpha", "model_info": None},
        "not-an-object"
    ]})

    options = await node.get_models(credential)

    assert as_tuples(options) == [
        ("Alpha", "Alpha", None),
        ("alpha-2", "alpha-2", None),
        ("b-model", "b-model", None)
    ]

@pytest.mark.asyncio
async def test_model_names_sort_by_code_point_after_casefold(node, gateway, credential):
    """Test punctuation orders by code point, independent of the process locale"""
    gateway.models = (200, {"data": [
        {"model_name": name} for name in ["a1", "a_1", "a-1", "A2", "a.1"]
    ]})

    options = await node.get_models(credential)

    assert [o.value for o in options] == ["a-1", "a.1", "a1", "A2", "a_1"]

@pytest.mark.asyncio
async def test_unknown_provider_gives_empty_list(node, gateway, credential, model_listing):
    gateway.models = (200, model_listing)
    assert await node.get_models(credential, "cohere") == []

@pytest.mark.asyncio
async def test_missing_api_key_sentinels(node, gateway):
    """Test loaders ask for credentials without calling the gateway"""
    credential = ChatModelCredential()

    providers = await node.get_providers(credential)
    models = await node.get_models(credential, "openai")

    assert as_tuples(providers) == [(
        "API Key Required", "",
        "Set up FlowEngine Chat Model API credentials to load providers"
    )]
    assert as_tuples(models) == [(
        "API Key Required", "",
        "Set up FlowEngine Chat Model API credentials to load models"
    )]
    assert gateway.requests == []

@pytest.mark.asyncio
@pytest.mark.parametrize("models_response", [
    (500, {"error": {"message": "boom"}}),
    (401, {"error": {"message": "bad key"}}),
    (200, {"models": []}),
    (200, {"data": {"gpt-4": {}}}),
    (200, ["gpt-4"]),
    lambda request: httpx.Response(200, content=b"<html>not json</html>"),
    "connect-error"
])
async def test_failures_degrade_to_fallbacks(node, gateway, credential, models_response):
    """Test every failure path returns the labeled fallback list"""
    gateway.models = models_response

    providers = await node.get_providers(credential)
    models = await node.get_models(credential, "openai")

    assert as_tuples(providers) == [("All Providers", "all", None)]
    assert as_tuples(models) == [(
        "Error Loading Models", "",
        "Failed to fetch available models from FlowEngine"
    )]

@pytest.mark.asyncio
async def test_load_options_method_table(node, gateway, credential, model_listing):
    gateway.models = (200, model_listing)

    providers = await node.load_options("getProviders", credential)
    models = await node.load_options("getModels", credential, {"provider": "anthropic"})

    assert providers[0].value == "all"
    assert [o.value for o in models] == ["claude-3"]

    with pytest.raises(ValueError, match="Unknown option loader"):
        await node.load_options("getVoices", credential)
