from zenalyst.services.analysis import PREDEFINED_PROMPTS, Intent, analyze, classify


def test_classify_each_predefined_prompt():
    intents = [classify(p["prompt"]) for p in PREDEFINED_PROMPTS]
    assert intents == [
        [Intent.REVENUE_GROWTH],
        [Intent.REVENUE_GROWTH, Intent.COUNTRY_PERFORMANCE],
        [Intent.CUSTOMER_CONCENTRATION],
        [Intent.QUARTERLY_TRENDS],
        [Intent.REVENUE_BRIDGE],
    ]


def test_classify_is_case_insensitive():
    assert classify("QUARTERLY numbers please") == [Intent.QUARTERLY_TRENDS]


def test_classify_unknown_prompt():
    assert classify("tell me a joke") == []


def test_analyze_without_intent_has_no_recommendations(store):
    result = analyze("tell me a joke", store)
    assert result["insights"] == []
    assert result["recommendations"] == []
    assert result["data"] == {}


def test_analyze_growth_and_countries(store):
    result = analyze("Which countries are showing the highest revenue growth and why?", store)
    assert result["intents"] == ["revenue_growth", "country_performance"]
    assert result["insights"][0] == "Top 5 customers by revenue growth: Acme, Umbrella, Initech, Globex"
    assert "Highest growth customer: Acme with $150.00 growth" in result["insights"]
    assert "Highest revenue country: Germany with $300.00" in result["insights"]
    assert set(result["data"]) == {"topCustomers", "topCountries"}
    assert len(result["recommendations"]) == 4


def test_analyze_concentration(store):
    result = analyze("Analyze customer concentration and identify potential risks", store)
    assert result["data"]["concentration"][0]["customerName"] == "Globex"


def test_analyze_bridge(store):
    result = analyze("show the revenue bridge", store)
    assert "Total expansion revenue: $70.00" in result["insights"]
    assert "Total churned revenue: $35.00" in result["insights"]
    assert len(result["data"]["bridgeData"]) == 4


def test_analyze_bridge_without_data(empty_db, settings):
    from zenalyst.services.data_layer import ReportingStore

    result = analyze("churned customers", ReportingStore(empty_db, settings))
    assert result["insights"] == ["No revenue bridge data available"]
    assert result["data"]["bridgeData"] == []
