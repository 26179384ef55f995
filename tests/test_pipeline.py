import json

import pytest

from people_filter.config import PipelineOptions, Strategy
from people_filter.exceptions import ConfigurationError, ModelUnavailableError, VerificationFailed
from people_filter.pipeline import Pipeline, distinct_titles, filter_candidates

EXTRACT = "Analyze this job search"
RATE = "Rate how well"
VERIFY = "Verify if"

DESCRIPTION = "Looking for a person responsible for conversion optimization"

KEYWORD_REPLY = json.dumps({
    "positiveKeywords": {"exactTerms": [], "partialTerms": ["conversion"], "roleTypes": []},
    "negativeKeywords": {"exactTerms": ["intern"], "partialTerms": [], "roleTypes": []},
    "skillKeywords": [],
    "seniorityLevels": {"include": [], "exclude": []},
})

CANDIDATES = [
    {"name": "Ada", "title": "Conversion Intern", "company": "Acme"},
    {"name": "Bob", "title": "Head of Conversion", "company": "Globex"},
    {"name": "Cy", "title": "Sales Rep", "company": "Initech"},
]


def _by_name(**ratings):
    """Reply callable choosing a reply by the ``Person: <name>`` in the prompt."""
    def reply(prompt):
        for name, value in ratings.items():
            if f"Person: {name}" in prompt or f'"name": "{name}"' in prompt:
                return value
        return "0"
    return reply


TITLES_ONLY = PipelineOptions(use_scorer=False, use_verifier=False)


# ── Title stage ────────────────────────────────────────────────────────────────

async def test_conversion_search(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, RATE: "90", VERIFY: "MATCH"})
    results = await Pipeline(client).run(CANDIDATES, DESCRIPTION)

    assert [r.candidate["title"] for r in results] == ["Head of Conversion"]
    assert results[0].rating == 90
    assert results[0].verified is True
    assert results[0].to_record() == {"name": "Bob", "title": "Head of Conversion", "company": "Globex", "match_rating": 90}


async def test_keywords_extracted_once_per_run(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, RATE: "90", VERIFY: "MATCH"})
    await Pipeline(client).run(CANDIDATES * 5, DESCRIPTION)
    assert len(client.prompts_with(EXTRACT)) == 1


async def test_known_titles_sent_to_extractor(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY})
    await Pipeline(client, TITLES_ONLY).run(CANDIDATES, DESCRIPTION)
    assert "- conversion intern\n- head of conversion\n- sales rep" in client.prompts_with(EXTRACT)[0]


async def test_candidates_without_title_are_dropped(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY})
    results = await Pipeline(client, TITLES_ONLY).run([{"name": "Dee"}, {"name": "Eve", "title": ""}], DESCRIPTION)
    assert results == []


async def test_title_stage_only(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY})
    results = await Pipeline(client, TITLES_ONLY).run(CANDIDATES, DESCRIPTION)

    assert len(client.calls) == 1
    assert results[0].rating is None
    assert "match_rating" not in results[0].to_record()


async def test_caller_excludes_replace_inferred(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY})
    options = PipelineOptions(use_scorer=False, use_verifier=False, exclude_terms=["head"])
    results = await Pipeline(client, options).run(CANDIDATES, DESCRIPTION)
    assert [r.candidate["title"] for r in results] == ["Conversion Intern"]


async def test_extraction_outage_passes_every_titled_candidate(make_client):
    client = make_client(replies={EXTRACT: ModelUnavailableError("down")})
    results = await Pipeline(client, TITLES_ONLY).run(CANDIDATES, DESCRIPTION)
    assert len(results) == 3


# ── Remote stages ──────────────────────────────────────────────────────────────

async def test_min_rating(make_client):
    candidates = [{"name": "Ada", "title": "Conversion Lead"}, {"name": "Bob", "title": "Conversion Analyst"}]
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, RATE: _by_name(Ada="80", Bob="30"), VERIFY: "MATCH"})
    results = await Pipeline(client, PipelineOptions(min_rating=50)).run(candidates, DESCRIPTION)

    assert [r.candidate["name"] for r in results] == ["Ada"]
    assert len(client.prompts_with(VERIFY)) == 1  # Bob never reaches the verifier


async def test_rating_at_threshold_passes(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, RATE: "50"})
    options = PipelineOptions(min_rating=50, use_verifier=False)
    results = await Pipeline(client, options).run(CANDIDATES, DESCRIPTION)
    assert [r.rating for r in results] == [50]


async def test_scorer_failure_drops_candidate(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, RATE: "no idea"})
    results = await Pipeline(client, PipelineOptions(use_verifier=False)).run(CANDIDATES, DESCRIPTION)
    assert results == []


async def test_verifier_only(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, VERIFY: "NO_MATCH"})
    results = await Pipeline(client, PipelineOptions(use_scorer=False)).run(CANDIDATES, DESCRIPTION)

    assert results == []
    assert client.prompts_with(RATE) == []


async def test_verification_failure_surfaces_after_batch(make_client):
    candidates = [{"name": "Ada", "title": "Conversion Lead"}, {"name": "Bob", "title": "Conversion Analyst"}]
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, VERIFY: _by_name(Ada="maybe", Bob="MATCH")})

    with pytest.raises(VerificationFailed) as excinfo:
        await Pipeline(client, PipelineOptions(use_scorer=False)).run(candidates, DESCRIPTION)

    assert [r.candidate["name"] for r in excinfo.value.results] == ["Bob"]
    assert [c["name"] for c, _ in excinfo.value.failures] == ["Ada"]


async def test_tolerant_verification(make_client):
    candidates = [{"name": "Ada", "title": "Conversion Lead"}, {"name": "Bob", "title": "Conversion Analyst"}]
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, VERIFY: _by_name(Ada="maybe", Bob="MATCH")})
    options = PipelineOptions(use_scorer=False, tolerate_verification_errors=True)

    results = await Pipeline(client, options).run(candidates, DESCRIPTION)
    assert [r.candidate["name"] for r in results] == ["Bob"]


async def test_input_order_kept(make_client):
    candidates = [{"name": f"P{i}", "title": f"Conversion Role {i}"} for i in range(12)]
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, RATE: "75", VERIFY: "MATCH"}, delay=0.001)
    results = await Pipeline(client).run(candidates, DESCRIPTION)
    assert [r.candidate["name"] for r in results] == [c["name"] for c in candidates]


async def test_concurrency_bound(make_client):
    candidates = [{"name": f"P{i}", "title": "Conversion Lead"} for i in range(10)]
    client = make_client(replies={EXTRACT: KEYWORD_REPLY, VERIFY: "MATCH"}, delay=0.01)
    options = PipelineOptions(use_scorer=False, max_concurrency=3)

    results = await Pipeline(client, options).run(candidates, DESCRIPTION)

    assert len(results) == 10
    assert client.max_in_flight == 3


# ── Other strategies ───────────────────────────────────────────────────────────

async def test_relevance_strategy(make_client):
    client = make_client(replies={
        "select the job titles most relevant": json.dumps({"titles": ["Head of Conversion"]}),
        "List keywords that would appear": json.dumps({"keywords": []}),
    })
    options = PipelineOptions(strategy=Strategy.relevance, use_scorer=False, use_verifier=False)
    results = await Pipeline(client, options).run(CANDIDATES, DESCRIPTION)

    assert [r.candidate["title"] for r in results] == ["Head of Conversion"]
    assert client.prompts_with(EXTRACT) == []


async def test_flat_strategy(make_client):
    client = make_client(replies={"should be INCLUDED": "conversion", "should be excluded": "intern"})
    options = PipelineOptions(strategy=Strategy.flat, use_scorer=False, use_verifier=False)
    results = await Pipeline(client, options).run(CANDIDATES, DESCRIPTION)
    assert [r.candidate["title"] for r in results] == ["Head of Conversion"]


# ── Inputs ─────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("description", ["", "   ", None])
async def test_blank_description_rejected_before_any_call(make_client, description):
    client = make_client(default="MATCH")
    with pytest.raises(ConfigurationError):
        await filter_candidates(CANDIDATES, description, client=client)
    assert client.calls == []


async def test_filter_candidates(make_client):
    client = make_client(replies={EXTRACT: KEYWORD_REPLY})
    results = await filter_candidates(CANDIDATES, DESCRIPTION, TITLES_ONLY, client=client)
    assert [r.candidate["name"] for r in results] == ["Bob"]


def test_distinct_titles():
    candidates = [{"title": " Head of Conversion "}, {"title": "head of conversion"}, {"title": ""}, {"name": "x"}]
    assert distinct_titles(candidates) == {"head of conversion"}
