import pytest
from src.exceptions import ConfigurationError
from src.schemas.configuration import FilterRule, TypeConfiguration
from src.services.search.query_compiler import QueryCompiler, append, build_search_body, compile_query


def compiler(filters) -> QueryCompiler:
    return QueryCompiler({name: FilterRule.model_validate(rule) for name, rule in filters.items()})


VALUE_FILTER = {
    "val": {
        "regex": "val:(\\w+)",
        "regexGroup": 1,
        "clause": "must",
        "queryType": "multi_match",
        "fields": ["value"],
    }
}


def test_single_pattern_value():
    assert compiler(VALUE_FILTER).compile("val:10") == {
        "bool": {"must": [{"multi_match": {"query": "10", "fields": ["value"]}}]}
    }


def test_repeated_pattern_values_are_ored():
    assert compiler(VALUE_FILTER).compile("val:10 val:11") == {
        "bool": {
            "must": [
                {
                    "bool": {
                        "should": [
                            {"multi_match": {"query": "10", "fields": ["value"]}},
                            {"multi_match": {"query": "11", "fields": ["value"]}},
                        ]
                    }
                }
            ]
        }
    }


@pytest.mark.parametrize("query", [None, "", "   "])
def test_blank_query_compiles_to_nothing(query):
    assert compiler(VALUE_FILTER).compile(query) is None


def test_whole_match_filter_uses_first_match_only():
    filters = {"code": {"regex": "#\\d+", "clause": "filter", "queryType": "multi_match", "fields": ["code"]}}
    assert compiler(filters).compile("#12 #34") == {
        "bool": {"filter": [{"multi_match": {"query": "#12", "fields": ["code"]}}]}
    }


def test_catch_all_receives_remaining_text():
    filters = {
        "year": {
            "regex": "year:(\\d{4})",
            "regexGroup": 1,
            "clause": "filter",
            "queryType": "range",
            "field": "year",
            "operator": "gte",
        },
        "text": {"clause": "must", "queryType": "multi_match", "fields": ["title", "abstract"]},
    }
    assert compiler(filters).compile("heart year:2019 disease") == {
        "bool": {
            "filter": [{"range": {"year": {"gte": "2019"}}}],
            "must": [{"multi_match": {"query": "heart  disease", "fields": ["title", "abstract"]}}],
        }
    }


def test_catch_all_declared_first_still_runs_last():
    filters = {
        "text": {"clause": "must", "queryType": "multi_match", "fields": ["title"]},
        "val": VALUE_FILTER["val"],
    }
    result = compiler(filters).compile("val:10 cancer")
    assert list(result["bool"]) == ["must"]
    assert result["bool"]["must"] == [
        {"multi_match": {"query": "10", "fields": ["value"]}},
        {"multi_match": {"query": "cancer", "fields": ["title"]}},
    ]


@pytest.mark.parametrize("query", ["val:10", "  val:10  "])
def test_catch_all_skipped_when_nothing_remains(query):
    filters = dict(VALUE_FILTER, text={"clause": "must", "queryType": "multi_match", "fields": ["title"]})
    result = compiler(filters).compile(query)
    assert result == {"bool": {"must": [{"multi_match": {"query": "10", "fields": ["value"]}}]}}


def test_only_catch_all_filters():
    filters = {"text": {"clause": "should", "queryType": "multi_match", "fields": ["title"]}}
    assert compiler(filters).compile(" flu ") == {
        "bool": {"should": [{"multi_match": {"query": "flu", "fields": ["title"]}}]}
    }


def test_patterns_match_against_original_query():
    # "id:(\d+)" strips "id:42" from the leftover text, but the second filter still sees "42" in the original query
    filters = {
        "id": {"regex": "id:(\\d+)", "regexGroup": 1, "clause": "must", "queryType": "multi_match", "fields": ["id"]},
        "number": {"regex": "(\\d+)", "regexGroup": 1, "clause": "should", "queryType": "multi_match", "fields": ["n"]},
    }
    result = compiler(filters).compile("id:42")
    assert result == {
        "bool": {
            "must": [{"multi_match": {"query": "42", "fields": ["id"]}}],
            "should": [{"multi_match": {"query": "42", "fields": ["n"]}}],
        }
    }


def test_filters_sharing_a_clause_are_merged():
    filters = {
        "a": {"regex": "a:(\\w+)", "regexGroup": 1, "clause": "must", "queryType": "multi_match", "fields": ["a"]},
        "b": {"regex": "b:(\\w+)", "regexGroup": 1, "clause": "must", "queryType": "multi_match", "fields": ["b"]},
    }
    result = compiler(filters).compile("b:2 a:1")
    assert result["bool"]["must"] == [
        {"multi_match": {"query": "1", "fields": ["a"]}},
        {"multi_match": {"query": "2", "fields": ["b"]}},
    ]


def test_transform_is_applied_to_range_values():
    filters = {
        "since": {
            "regex": "since:(\\d{8})",
            "regexGroup": 1,
            "clause": "filter",
            "queryType": "RANGE",
            "field": "published",
            "operator": "gte",
            "transform": {"from": "date", "to": "timestamp", "format": "yyyyMMdd"},
        }
    }
    assert compiler(filters).compile("since:20230101") == {
        "bool": {"filter": [{"range": {"published": {"gte": 1672531200000}}}]}
    }


def test_unsupported_query_type():
    filters = {"val": dict(VALUE_FILTER["val"], queryType="term")}
    with pytest.raises(ConfigurationError, match="The following query type is not supported: term"):
        compiler(filters).compile("val:10")


def test_unmatched_unsupported_filter_is_never_built():
    filters = {"val": dict(VALUE_FILTER["val"], queryType="term")}
    assert compiler(filters).compile("nothing here") == {"bool": {}}


def test_multi_match_without_fields():
    filters = {"val": {"regex": "val:(\\w+)", "regexGroup": 1, "clause": "must", "queryType": "multi_match"}}
    with pytest.raises(ConfigurationError):
        compiler(filters).compile("val:10")


def test_range_without_operator():
    filters = {"y": {"regex": "y:(\\d+)", "regexGroup": 1, "clause": "filter", "queryType": "range", "field": "y"}}
    with pytest.raises(ConfigurationError):
        compiler(filters).compile("y:1")


@pytest.mark.parametrize("group", [2, -1])
def test_group_out_of_range(group):
    filters = {"val": dict(VALUE_FILTER["val"], regexGroup=group)}
    with pytest.raises(ConfigurationError, match=f"has no group {group}"):
        compiler(filters).compile("val:10")


class TestAppend:
    def test_adds_new_clause(self):
        parent = {}
        append(parent, {"must": [1]})
        assert parent == {"must": [1]}

    def test_extends_existing_clause(self):
        parent = {"must": [1]}
        append(parent, {"must": [2, 3]})
        assert parent == {"must": [1, 2, 3]}

    def test_empty_child_is_ignored(self):
        parent = {"must": [1]}
        append(parent, None)
        append(parent, {})
        assert parent == {"must": [1]}

    def test_non_list_clause_is_rejected(self):
        with pytest.raises(ConfigurationError, match="Unsupported append operation."):
            append({"must": {"match_all": {}}}, {"must": [1]})


def test_compile_query_uses_configuration_filters(type_config):
    configuration = TypeConfiguration.from_payload(type_config)
    assert compile_query(configuration, "year:2020") == {
        "bool": {"filter": [{"range": {"year": {"gte": "2020"}}}]}
    }


class TestBuildSearchBody:
    def test_with_query_and_extra_keys(self):
        body = build_search_body({"bool": {}}, 20, 5, {"sort": ["year"]})
        assert body == {"from": 20, "size": 5, "query": {"bool": {}}, "sort": ["year"]}

    def test_without_query(self):
        assert build_search_body(None) == {"from": 0, "size": 10}
