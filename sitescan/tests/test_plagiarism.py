import asyncio
import unittest
from typing import Callable, Dict, List, Optional, Sequence

import aiohttp

from sitescan.analyzers.plagiarism import (
    ExternalPlagiarismDetector,
    contains_phrase,
    extract_queries,
    is_own_domain,
    score_match,
)
from sitescan.config import DetectionConfig, Settings
from sitescan.models import PageRecord, SearchResult
from sitescan.search import (
    DuckDuckGoSearchProvider,
    FallbackSearchProvider,
    SearchProvider,
    SerperSearchProvider,
    build_search_query,
    create_search_provider,
    resolve_duckduckgo_redirect,
)
from sitescan.similarity import Tokenizer, build_profiles
from sitescan.utils import run_bounded


def terms(prefix: str, start: int, count: int) -> str:
    return " ".join(f"{prefix}{i:03d}" for i in range(start, start + count))


def sentences(prefix: str, count: int, size: int = 12) -> List[str]:
    return [terms(prefix, n * size, size) for n in range(count)]


def build_page(page_id: int, prefix: str, count: int = 15, host: str = "mijnsite.nl") -> PageRecord:
    body = "".join(f"<p>{s}.</p> " for s in sentences(prefix, count))
    return PageRecord(id=page_id, url=f"https://{host}/post-{page_id}", title=f"Post {page_id}", html_body=body)


class FakeProvider(SearchProvider):
    name = "fake"

    def __init__(self, respond: Optional[Callable[[str], List[SearchResult]]] = None, delay: float = 0.0):
        super().__init__()
        self.respond = respond or (lambda query: [])
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def search(self, query: str, exclude_hosts: Sequence[str]) -> List[SearchResult]:
        self.calls.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return self.respond(query)
        finally:
            self.in_flight -= 1


class FailingProvider(SearchProvider):
    name = "failing"

    async def search(self, query: str, exclude_hosts: Sequence[str]) -> List[SearchResult]:
        raise RuntimeError("search backend exploded")


class FakeResponse:
    def __init__(self, status: int = 200, payload=None, text: str = ""):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self, content_type=None):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def text(self):
        return self._text


class FakeRequestContext:
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[BaseException] = None):
        self.response = response
        self.error = error

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self.response

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[BaseException] = None):
        self.response = response
        self.error = error
        self.requests: List[Dict] = []

    def _request(self, method: str, url: str, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        return FakeRequestContext(self.response, self.error)

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)


DUCKDUCKGO_HTML = """
<html><body>
<div class="result results_links web-result">
  <div class="links_main result__body">
    <h2 class="result__title">
      <a rel="nofollow" class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fkopie.example.org%2Fartikel%3Fa%3D1&amp;rut=abc">Gekopieerd <b>artikel</b></a>
    </h2>
    <a class="result__snippet" href="#">Warmtepompen <b>besparen</b> energie</a>
  </div>
</div>
<div class="result results_links web-result">
  <div class="links_main result__body">
    <h2 class="result__title"><a class="result__a" href="https://direct.example.com/pagina">Direct resultaat</a></h2>
    <div class="result__snippet">Tweede fragment</div>
  </div>
</div>
<div class="result"><a class="result__a" href="/relative/only">Geen link</a></div>
</body></html>
"""


class QueryExtractionTests(unittest.TestCase):
    def setUp(self):
        self.tokenizer = Tokenizer()

    def test_most_distinctive_sentences_are_selected(self):
        twelve = terms("term", 0, 12)
        fourteen = terms("woord", 0, 14)
        text = f"{twelve}. {fourteen}. Kort."
        self.assertEqual(extract_queries(text, self.tokenizer), [fourteen, twelve])

    def test_wrapping_quotes_are_removed_and_duplicates_skipped(self):
        sentence = terms("term", 0, 12)
        text = f'"{sentence}". {sentence}! {sentence}?'
        self.assertEqual(extract_queries(text, self.tokenizer, max_queries=2)[0], sentence)
        self.assertEqual(len(extract_queries(text, self.tokenizer, max_queries=2)), 2)

    def test_falls_back_to_token_windows(self):
        text = terms("term", 0, 40)  # one 319-char sentence, too long to use
        queries = extract_queries(text, self.tokenizer)
        self.assertEqual(queries, [terms("term", 0, 18), terms("term", 9, 18)])

    def test_empty_text_has_no_queries(self):
        self.assertEqual(extract_queries("", self.tokenizer), [])
        self.assertEqual(extract_queries("Kort. Ook kort.", self.tokenizer), [])


class ScoreMatchTests(unittest.TestCase):
    def setUp(self):
        self.tokenizer = Tokenizer()
        self.query = terms("term", 0, 12)

    def test_literal_query_in_snippet_scores_high(self):
        score = score_match(self.query, "Bron", f"... {self.query} ...", self.tokenizer)
        self.assertGreaterEqual(score, 88)

    def test_seven_token_phrase_floor(self):
        snippet = f"{terms('term', 0, 7)} {terms('ander', 0, 10)}"
        self.assertEqual(score_match(self.query, "", snippet, self.tokenizer), 68)

    def test_six_token_phrase_floor(self):
        snippet = f"{terms('term', 0, 6)} {terms('ander', 0, 10)}"
        self.assertEqual(score_match(self.query, "", snippet, self.tokenizer), 56)

    def test_scattered_overlap_uses_token_ratio(self):
        snippet = "term000 ander000 term002 ander001 term004 ander002"
        # 3 shared tokens out of max(12, 6)
        self.assertEqual(score_match(self.query, "", snippet, self.tokenizer), 25)

    def test_unrelated_result_scores_zero(self):
        self.assertEqual(score_match(self.query, "Iets", "heel anders", self.tokenizer), 0)
        self.assertEqual(score_match("", "Iets", "heel anders", self.tokenizer), 0)

    def test_contains_phrase(self):
        tokens = ["aaa", "bbb", "ccc", "ddd"]
        self.assertTrue(contains_phrase(tokens, "xxx bbb ccc ddd yyy", 3))
        self.assertFalse(contains_phrase(tokens, "aaa bbb xxx ccc ddd", 3))
        self.assertFalse(contains_phrase(tokens[:2], "aaa bbb", 3))


class HostFilterTests(unittest.TestCase):
    def test_own_domain_matching(self):
        own = {"mijnsite.nl"}
        self.assertTrue(is_own_domain("https://www.mijnsite.nl/a", own))
        self.assertTrue(is_own_domain("https://blog.mijnsite.nl/a", own))
        self.assertTrue(is_own_domain("https://mijnsite.nl/a", {"shop.mijnsite.nl"}))
        self.assertFalse(is_own_domain("https://anderesite.nl/a", own))
        self.assertFalse(is_own_domain("https://notmijnsite.nl/a", own))
        self.assertFalse(is_own_domain("geen-url", own))

    def test_build_search_query(self):
        query = build_search_query('zeg "hallo" wereld', ["a.nl", "b.nl", "c.nl"])
        self.assertEqual(query, '"zeg hallo wereld" -site:a.nl -site:b.nl')
        self.assertEqual(build_search_query("los", []), '"los"')


class RunBoundedTests(unittest.TestCase):
    def test_results_keep_input_order_and_failures_get_default(self):
        async def worker(value: int) -> int:
            await asyncio.sleep(0.001 * (5 - value))
            if value == 3:
                raise ValueError("boom")
            return value * 10

        results = asyncio.run(run_bounded([1, 2, 3, 4], 2, worker, default=-1))
        self.assertEqual(results, [10, 20, -1, 40])

    def test_concurrency_is_bounded(self):
        state = {"active": 0, "peak": 0}

        async def worker(value: int) -> int:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.005)
            state["active"] -= 1
            return value

        results = asyncio.run(run_bounded(list(range(10)), 3, worker))
        self.assertEqual(results, list(range(10)))
        self.assertEqual(state["peak"], 3)

    def test_failed_slots_get_separate_defaults(self):
        async def worker(value: int) -> List[int]:
            raise ValueError("boom")

        results = asyncio.run(run_bounded([1, 2], 2, worker, default=[]))
        self.assertEqual(results, [[], []])
        results[0].append(1)
        self.assertEqual(results[1], [])

    def test_empty_input(self):
        async def worker(value):
            return value

        self.assertEqual(asyncio.run(run_bounded([], 3, worker)), [])


class ExternalPlagiarismDetectorTests(unittest.TestCase):
    def setUp(self):
        self.config = DetectionConfig()

    def detect(self, provider: SearchProvider, pages: List[PageRecord], config: Optional[DetectionConfig] = None):
        config = config or self.config
        detector = ExternalPlagiarismDetector(provider, config)
        return asyncio.run(detector.detect(build_profiles(pages, config)))

    def test_copied_text_is_found_and_own_hosts_filtered(self):
        def respond(query: str) -> List[SearchResult]:
            return [
                SearchResult(url="https://www.mijnsite.nl/post-1", title="Eigen", snippet=query, provider="fake"),
                SearchResult(url="https://duckduckgo.com/y.js?ad=1", title="Advertentie", snippet=query, provider="fake"),
                SearchResult(url="https://kopie.example.org/artikel", title="Kopie", snippet=query, provider="fake"),
                SearchResult(url="https://anders.example.org/x", title="Anders", snippet="niets gemeen", provider="fake"),
            ]

        provider = FakeProvider(respond)
        matches = self.detect(provider, [build_page(1, "tekst")])

        self.assertEqual(len(provider.calls), 2)
        self.assertEqual([m.source_url for m in matches[1]], ["https://kopie.example.org/artikel"])
        self.assertGreaterEqual(matches[1][0].score, 88)
        self.assertEqual(matches[1][0].provider, "fake")
        self.assertIn(matches[1][0].query, provider.calls)

    def test_best_score_per_url_is_kept_and_list_capped(self):
        def respond(query: str) -> List[SearchResult]:
            tokens = query.split()
            results = [
                SearchResult(url=f"https://bron{i}.example.org/", title=f"Bron {i}", snippet=query, provider="fake")
                for i in range(4)
            ]
            results.append(SearchResult(
                url="https://gedeeld.example.org/",
                title="Gedeeld",
                snippet=" ".join(tokens[:7]) + " " + terms("ruis", 0, 10),
                provider="fake",
            ))
            return results

        matches = self.detect(FakeProvider(respond), [build_page(1, "tekst")])

        self.assertEqual(len(matches[1]), 3)
        urls = [m.source_url for m in matches[1]]
        self.assertEqual(len(set(urls)), 3)
        self.assertNotIn("https://gedeeld.example.org/", urls)
        scores = [m.score for m in matches[1]]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_timeouts_yield_empty_matches(self):
        config = DetectionConfig(external_query_timeout=0.05)
        provider = FakeProvider(
            lambda q: [SearchResult(url="https://kopie.example.org/", title="x", snippet=q, provider="fake")],
            delay=5,
        )
        matches = self.detect(provider, [build_page(1, "tekst"), build_page(2, "inhoud")], config)
        self.assertEqual(matches, {1: [], 2: []})

    def test_fallback_gets_its_own_request_timeout(self):
        def copied(query: str) -> List[SearchResult]:
            return [SearchResult(url="https://kopie.example.org/", title="Kopie", snippet=query, provider="fake")]

        config = DetectionConfig(external_query_timeout=0.3)
        slow_empty = FakeProvider(delay=0.2)
        slow_hit = FakeProvider(copied, delay=0.2)
        matches = self.detect(FallbackSearchProvider(slow_empty, slow_hit), [build_page(1, "tekst")], config)

        self.assertTrue(matches[1])
        self.assertEqual(matches[1][0].source_url, "https://kopie.example.org/")
        self.assertEqual(len(slow_hit.calls), 2)

    def test_fallback_runs_after_primary_timeout(self):
        def copied(query: str) -> List[SearchResult]:
            return [SearchResult(url="https://kopie.example.org/", title="Kopie", snippet=query, provider="fake")]

        config = DetectionConfig(external_query_timeout=0.1)
        hanging = FakeProvider(copied, delay=5)
        fallback = FakeProvider(copied)
        matches = self.detect(FallbackSearchProvider(hanging, fallback), [build_page(1, "tekst")], config)

        self.assertEqual([m.source_url for m in matches[1]], ["https://kopie.example.org/"])
        self.assertEqual(len(fallback.calls), 2)

    def test_provider_errors_yield_empty_matches(self):
        matches = self.detect(FailingProvider(), [build_page(1, "tekst")])
        self.assertEqual(matches, {1: []})

    def test_short_pages_are_not_searched(self):
        provider = FakeProvider()
        matches = self.detect(provider, [build_page(1, "tekst", count=5)])
        self.assertEqual(provider.calls, [])
        self.assertEqual(matches, {1: []})

    def test_disabled_check_makes_no_calls(self):
        provider = FakeProvider()
        config = DetectionConfig(external_enabled=False)
        matches = self.detect(provider, [build_page(1, "tekst")], config)
        self.assertEqual(provider.calls, [])
        self.assertEqual(matches, {1: []})

    def test_page_cap_and_concurrency_limit(self):
        config = DetectionConfig(external_max_pages=4, external_concurrency=2)
        provider = FakeProvider(delay=0.01)
        pages = [build_page(i, f"pagina{i}x", count=12 + i) for i in range(1, 7)]
        matches = self.detect(provider, pages, config)

        self.assertEqual(len(provider.calls), 8)
        self.assertEqual(provider.max_in_flight, 2)
        self.assertEqual(sorted(matches), [1, 2, 3, 4, 5, 6])
        # the four longest pages are searched
        searched = {q.split()[0] for q in provider.calls}
        self.assertEqual(searched, {f"pagina{i}x000" for i in (3, 4, 5, 6)} | {f"pagina{i}x012" for i in (3, 4, 5, 6)})


class SearchProviderTests(unittest.TestCase):
    def test_resolve_duckduckgo_redirect(self):
        self.assertEqual(
            resolve_duckduckgo_redirect("//duckduckgo.com/l/?uddg=https%3A%2F%2Fexample.org%2Fpagina&rut=abc"),
            "https://example.org/pagina",
        )
        self.assertEqual(
            resolve_duckduckgo_redirect("/l/?uddg=https%3A%2F%2Fexample.org%2F&amp;rut=1"),
            "https://example.org/",
        )
        self.assertEqual(resolve_duckduckgo_redirect("https://example.org/x"), "https://example.org/x")
        self.assertEqual(resolve_duckduckgo_redirect(""), "")

    def test_duckduckgo_results_are_parsed(self):
        results = DuckDuckGoSearchProvider().parse_results(DUCKDUCKGO_HTML)
        self.assertEqual([r.url for r in results], [
            "https://kopie.example.org/artikel?a=1",
            "https://direct.example.com/pagina",
        ])
        self.assertEqual(results[0].title, "Gekopieerd artikel")
        self.assertEqual(results[0].snippet, "Warmtepompen besparen energie")
        self.assertEqual(results[1].snippet, "Tweede fragment")
        self.assertEqual(results[0].provider, "duckduckgo")

    def test_duckduckgo_result_cap(self):
        results = DuckDuckGoSearchProvider(max_results=1).parse_results(DUCKDUCKGO_HTML)
        self.assertEqual(len(results), 1)

    def test_duckduckgo_search_sends_quoted_query(self):
        session = FakeSession(FakeResponse(200, text=DUCKDUCKGO_HTML))
        provider = DuckDuckGoSearchProvider(session=session)
        results = asyncio.run(provider.search("warmtepomp kopie", ["mijnsite.nl"]))

        self.assertEqual(len(results), 2)
        self.assertEqual(session.requests[0]["method"], "GET")
        self.assertIn("%22warmtepomp%20kopie%22%20-site%3Amijnsite.nl", session.requests[0]["url"])

    def test_duckduckgo_http_errors_yield_no_results(self):
        for session in (
            FakeSession(FakeResponse(500, text="oops")),
            FakeSession(error=aiohttp.ClientConnectionError("down")),
            FakeSession(error=asyncio.TimeoutError()),
        ):
            with self.subTest(session=session):
                provider = DuckDuckGoSearchProvider(session=session)
                self.assertEqual(asyncio.run(provider.search("vraag", [])), [])

    def test_serper_results_are_parsed(self):
        provider = SerperSearchProvider(api_key="key")
        payload = {"organic": [
            {"link": "https://a.example.org/", "title": "A", "snippet": "tekst"},
            {"link": "ftp://b.example.org/", "title": "B"},
            {"title": "zonder link"},
            "rommel",
        ]}
        results = provider.parse_results(payload)
        self.assertEqual([r.url for r in results], ["https://a.example.org/"])
        self.assertEqual(results[0].provider, "serper")
        self.assertEqual(provider.parse_results({"organic": "geen lijst"}), [])
        self.assertEqual(provider.parse_results(None), [])

    def test_serper_request(self):
        session = FakeSession(FakeResponse(200, payload={"organic": [
            {"link": "https://a.example.org/", "title": "A", "snippet": "tekst"},
        ]}))
        provider = SerperSearchProvider(api_key="geheim", session=session)
        results = asyncio.run(provider.search("zin", ["mijnsite.nl"]))

        self.assertEqual(len(results), 1)
        request = session.requests[0]
        self.assertEqual(request["method"], "POST")
        self.assertEqual(request["headers"]["X-API-KEY"], "geheim")
        self.assertEqual(request["json"], {"q": '"zin" -site:mijnsite.nl', "num": 5, "gl": "nl", "hl": "nl"})

    def test_serper_failures_yield_no_results(self):
        for session in (
            FakeSession(FakeResponse(500)),
            FakeSession(FakeResponse(200, payload=ValueError("bad json"))),
            FakeSession(error=asyncio.TimeoutError()),
        ):
            with self.subTest(session=session):
                provider = SerperSearchProvider(api_key="key", session=session)
                self.assertEqual(asyncio.run(provider.search("vraag", [])), [])

    def test_serper_without_key_makes_no_request(self):
        session = FakeSession(FakeResponse(200, payload={}))
        self.assertEqual(asyncio.run(SerperSearchProvider(api_key="", session=session).search("x", [])), [])
        self.assertEqual(session.requests, [])

    def test_fallback_provider_uses_fallback_on_empty(self):
        hit = SearchResult(url="https://a.example.org/", provider="fake")
        empty = FakeProvider()
        full = FakeProvider(lambda q: [hit])

        self.assertEqual(asyncio.run(FallbackSearchProvider(empty, full).search("q", [])), [hit])
        self.assertEqual(full.calls, ["q"])

        full.calls.clear()
        other = FakeProvider()
        self.assertEqual(asyncio.run(FallbackSearchProvider(full, other).search("q", [])), [hit])
        self.assertEqual(other.calls, [])

    def test_fallback_provider_recovers_from_primary_errors(self):
        hit = SearchResult(url="https://a.example.org/", provider="fake")
        fallback = FakeProvider(lambda q: [hit])

        results = asyncio.run(FallbackSearchProvider(FailingProvider(), fallback).search("q", []))
        self.assertEqual(results, [hit])
        self.assertEqual(fallback.calls, ["q"])

    def test_guarded_search_applies_timeout_per_request(self):
        slow = FakeProvider(lambda q: [SearchResult(url="https://a.example.org/", provider="fake")], delay=5)
        self.assertEqual(asyncio.run(slow.guarded_search("q", [], timeout=0.05)), [])
        self.assertEqual(asyncio.run(FailingProvider().guarded_search("q", [])), [])

    def test_provider_factory(self):
        provider = create_search_provider(Settings(SERPER_API_KEY=None, PLAGIARISM_EXTERNAL_PROVIDER="auto"))
        self.assertIsInstance(provider, DuckDuckGoSearchProvider)

        provider = create_search_provider(Settings(SERPER_API_KEY="key", PLAGIARISM_EXTERNAL_PROVIDER="auto"))
        self.assertIsInstance(provider, FallbackSearchProvider)
        self.assertIsInstance(provider.primary, SerperSearchProvider)

        provider = create_search_provider(Settings(SERPER_API_KEY=None, PLAGIARISM_EXTERNAL_PROVIDER="serper"))
        self.assertIsInstance(provider, DuckDuckGoSearchProvider)

        provider = create_search_provider(Settings(SERPER_API_KEY="key", PLAGIARISM_EXTERNAL_PROVIDER="duckduckgo"))
        self.assertIsInstance(provider, DuckDuckGoSearchProvider)


if __name__ == "__main__":
    unittest.main()
