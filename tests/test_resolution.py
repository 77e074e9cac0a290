import pytest

from metaboxql.core.identity import group_global_id, payload_digest
from tests.schema import LOCATION


@pytest.mark.asyncio
async def test_scalar_fields_are_coerced(demo):
    res = await demo.execute("""
    { post(id: 1) { title subtitle rating featured tags scores matrix } }
    """)
    assert res.errors is None, res.errors
    assert res.data["post"] == {
        "title": "Hello",
        "subtitle": "First subtitle",
        "rating": 4.5,
        "featured": True,
        "tags": ["news", "intro"],
        "scores": [1.0, 2.5, None],
        "matrix": [["a", "b"], ["c"]],
    }


@pytest.mark.asyncio
async def test_missing_and_malformed_values_are_null(demo):
    res = await demo.execute("{ page(id: 2) { subtitle rating featured scores related { __typename } } }")
    assert res.errors is None, res.errors
    assert res.data["page"] == {
        "subtitle": "About page",
        "rating": None,
        "featured": None,
        "scores": None,
        "related": None,
    }


@pytest.mark.asyncio
async def test_shape_mismatch_is_a_field_error(demo):
    res = await demo.execute("{ post(id: 5) { title scores } }")
    assert res.errors is not None
    assert "nesting depth" in res.errors[0].message
    assert res.errors[0].path == ["post", "scores"]
    assert res.data["post"] == {"title": "Broken", "scores": None}


@pytest.mark.asyncio
async def test_references_resolve_through_batched_loaders(demo):
    res = await demo.execute("""
    {
      post(id: 1) {
        related { __typename ... on Post { title } ... on Page { title } }
        primaryArticle { id title }
        reviewer { name userId }
        topic { id name }
        location { owner { name } }
      }
    }
    """)
    assert res.errors is None, res.errors
    post = res.data["post"]
    assert post["related"] == [
        {"__typename": "Page", "title": "About"},
        {"__typename": "Post", "title": "Hello"},
    ]
    assert post["primaryArticle"] == {"id": "42", "title": "Deep dive"}
    assert post["reviewer"] == {"name": "Alice", "userId": 7}
    assert post["topic"] == {"id": "3", "name": "News"}
    assert post["location"] == {"owner": {"name": "Alice"}}

    # sibling references share one batch per loader; repeated keys hit the cache
    assert len(demo.batches["post"]) == 1
    assert sorted(demo.batches["post"][0]) == [1, 2, 42]
    assert demo.batches["user"] == [[7]]
    assert demo.batches["term"] == [[3]]


@pytest.mark.asyncio
async def test_post_reference_by_id_matches_loader_result(demo):
    demo.store.set("primary_article", 4, "42", {"object_type": "post"})
    res = await demo.execute("{ post(id: 4) { primaryArticle { title } } }")
    assert res.errors is None, res.errors
    assert res.data["post"]["primaryArticle"] == {"title": "Deep dive"}


@pytest.mark.asyncio
async def test_missing_reference_resolves_to_null(demo):
    res = await demo.execute("{ post(id: 5) { related { __typename } reviewer { name } } }")
    assert res.errors is None, res.errors
    assert res.data["post"] == {"related": [None], "reviewer": None}
    # no stored reviewer: the user loader is never consulted
    assert demo.batches["user"] == []


@pytest.mark.asyncio
async def test_single_image_sizes(demo):
    res = await demo.execute("""
    {
      post(id: 1) {
        thumb: hero { id url width height alt }
        large: hero(size: LARGE) { url width }
        full: hero(size: FULL) { url width }
      }
    }
    """)
    assert res.errors is None, res.errors
    post = res.data["post"]
    assert post["thumb"] == {
        "id": "99", "url": "https://cdn.test/hero-150.jpg", "width": 150, "height": 150, "alt": "Hero",
    }
    assert post["large"] == {"url": "https://cdn.test/hero-1024.jpg", "width": 1024}
    # sizes without a rendition fall back to the original record
    assert post["full"] == {"url": "https://cdn.test/hero.jpg", "width": 1024}


@pytest.mark.asyncio
async def test_key_value_pairs(demo):
    res = await demo.execute("{ post(id: 1) { links { key value } } }")
    assert res.errors is None, res.errors
    assert res.data["post"]["links"] == [
        {"key": "docs", "value": "https://docs.test"},
        {"key": "home", "value": "https://home.test"},
    ]


@pytest.mark.asyncio
async def test_group_children_and_clones(demo):
    res = await demo.execute("""
    { post(id: 1) { location { street city lat } stops { street city } } }
    """)
    assert res.errors is None, res.errors
    assert res.data["post"]["location"] == {"street": "Main 1", "city": "Oslo", "lat": 59.9}
    assert res.data["post"]["stops"] == [
        {"street": "A", "city": "X"},
        {"street": "B", "city": "Y"},
    ]


@pytest.mark.asyncio
async def test_group_ids_are_content_derived(demo):
    res = await demo.execute("""
    {
      a: post(id: 1) { location { id } }
      b: post(id: 3) { location { id } }
      c: post(id: 4) { location { id } }
    }
    """)
    assert res.errors is None, res.errors
    a = res.data["a"]["location"]["id"]
    assert a == group_global_id("location", LOCATION)
    assert res.data["b"]["location"]["id"] == a
    assert res.data["c"]["location"]["id"] != a

    again = await demo.execute("{ post(id: 1) { location { id } } }")
    assert again.data["post"]["location"]["id"] == a


def test_payload_digest_ignores_key_order():
    assert payload_digest({"a": 1, "b": [1, 2]}) == payload_digest({"b": [1, 2], "a": 1})
    assert payload_digest({"a": 1}) != payload_digest({"a": 2})


@pytest.mark.asyncio
async def test_user_and_term_meta(demo):
    res = await demo.execute("{ user(id: 7) { twitter } category(id: 3) { name color } }")
    assert res.errors is None, res.errors
    assert res.data == {"user": {"twitter": "@alice"}, "category": {"name": "News", "color": "#ff0000"}}


@pytest.mark.asyncio
async def test_missing_loader_is_reported(demo):
    res = await demo.schema.execute("{ post(id: 1) { reviewer { name } } }", context_value={"loaders": {}})
    assert res.errors is not None
    assert "No 'user' loader" in res.errors[0].message


@pytest.mark.asyncio
async def test_single_member_union_resolves_its_member(demo):
    demo.store.set("spotlight", 4, 42, {"object_type": "post"})
    res = await demo.execute("{ post(id: 4) { spotlight { __typename ... on Article { title } } } }")
    assert res.errors is None, res.errors
    assert res.data["post"]["spotlight"] == {"__typename": "Article", "title": "Deep dive"}


@pytest.mark.asyncio
async def test_group_value_that_is_not_a_record(demo):
    demo.store.set("location", 4, "flat", {"object_type": "post"})
    res = await demo.execute("{ post(id: 4) { location { id city } } }")
    assert res.errors is None, res.errors
    assert res.data["post"]["location"] == {"id": group_global_id("location", "flat"), "city": None}
