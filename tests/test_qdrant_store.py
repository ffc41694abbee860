"""
Tests for the Qdrant-backed VectorSpace.
Error normalization is tested against a mocked client; behaviour against
qdrant-client's in-process local mode.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from qdrant_client import AsyncQdrantClient, models
from qdrant_client.http.exceptions import ResponseHandlingException

from vectorspace.core.errors import BackendFailure, InvalidNamespace, KeyCollision, KeyNotFound
from vectorspace.vector import DeterministicHashEmbedding, TextItem, VectorSpace
from vectorspace.vector.qdrant_store import QdrantVectorSpace
from vectorspace.vector.types import DistanceMetric, item_id


@pytest.fixture
def mock_client():
    client = AsyncMock(spec=AsyncQdrantClient)
    client.collection_exists.return_value = True
    return client


@pytest.fixture
def mocked_space(mock_client):
    return QdrantVectorSpace(mock_client, DeterministicHashEmbedding(dimension=16), item_type=TextItem)


@pytest_asyncio.fixture
async def local_space():
    client = AsyncQdrantClient(location=":memory:")
    space = QdrantVectorSpace(client, DeterministicHashEmbedding(dimension=32), item_type=TextItem)
    yield space
    await client.close()


def test_implements_interface(mocked_space):
    assert isinstance(mocked_space, VectorSpace)


def test_item_type_is_required(mock_client):
    with pytest.raises(TypeError):
        QdrantVectorSpace(mock_client, DeterministicHashEmbedding(dimension=16))
    with pytest.raises(ValueError, match="item_type"):
        QdrantVectorSpace(mock_client, DeterministicHashEmbedding(dimension=16), None)


@pytest.mark.asyncio
async def test_local_knn_returns_stored_item_objects(local_space):
    await local_space.create_namespace("docs")
    await local_space.add_items("docs", [TextItem("k1"), TextItem("k2")])

    results = await local_space.knn("docs", "k1", 1)

    assert results == [TextItem("k1")]
    assert isinstance(results[0], TextItem)


@pytest.mark.asyncio
async def test_create_namespace_uses_dimension_and_distance(mock_client):
    mock_client.collection_exists.return_value = False
    space = QdrantVectorSpace(mock_client, DeterministicHashEmbedding(dimension=16), TextItem,
                              metric=DistanceMetric.EUCLIDEAN)

    await space.create_namespace("docs")

    kwargs = mock_client.create_collection.await_args.kwargs
    assert kwargs["collection_name"] == "docs"
    assert kwargs["vectors_config"].size == 16
    assert kwargs["vectors_config"].distance == models.Distance.EUCLID


@pytest.mark.asyncio
async def test_create_existing_namespace_collides(mocked_space, mock_client):
    with pytest.raises(KeyCollision):
        await mocked_space.create_namespace("docs")

    mock_client.create_collection.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_namespace_never_reaches_server(mocked_space, mock_client):
    with pytest.raises(InvalidNamespace):
        await mocked_space.namespace_exists("")

    mock_client.collection_exists.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_namespace_is_key_not_found(mocked_space, mock_client):
    mock_client.collection_exists.return_value = False

    with pytest.raises(KeyNotFound):
        await mocked_space.delete_namespace("docs")
    with pytest.raises(KeyNotFound):
        await mocked_space.add_items("docs", [TextItem("a")])
    with pytest.raises(KeyNotFound):
        await mocked_space.knn("docs", "a", 3)

    mock_client.delete_collection.assert_not_awaited()
    mock_client.upsert.assert_not_awaited()
    mock_client.query_points.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_items_upserts_serialized_payloads(mocked_space, mock_client):
    await mocked_space.add_items("docs", [TextItem("k1"), TextItem("k2")])

    kwargs = mock_client.upsert.await_args.kwargs
    points = kwargs["points"]
    assert kwargs["collection_name"] == "docs"
    assert [point.id for point in points] == [item_id("k1"), item_id("k2")]
    assert points[0].payload == {"data": {"text": "k1"}}
    assert len(points[0].vector) == 16


@pytest.mark.asyncio
async def test_delete_missing_item_is_key_not_found(mocked_space, mock_client):
    mock_client.retrieve.return_value = []

    with pytest.raises(KeyNotFound) as excinfo:
        await mocked_space.delete_item("docs", TextItem("k1"))

    assert excinfo.value.missing == [item_id("k1")]
    mock_client.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_item_deletes_by_id(mocked_space, mock_client):
    mock_client.retrieve.return_value = [MagicMock(id=item_id("k1"))]

    await mocked_space.delete_item("docs", TextItem("k1"))

    selector = mock_client.delete.await_args.kwargs["points_selector"]
    assert selector.points == [item_id("k1")]


@pytest.mark.asyncio
async def test_knn_deserializes_and_drops_empty_payloads(mocked_space, mock_client):
    mock_client.query_points.return_value = MagicMock(points=[
        MagicMock(payload={"data": {"text": "k1"}}),
        MagicMock(payload=None),
        MagicMock(payload={"data": {"text": "k2"}}),
    ])

    results = await mocked_space.knn("docs", "k1", 3)

    assert results == [TextItem("k1"), TextItem("k2")]
    assert mock_client.query_points.await_args.kwargs["limit"] == 3


@pytest.mark.asyncio
async def test_client_errors_become_backend_failure(mocked_space, mock_client):
    mock_client.query_points.side_effect = ResponseHandlingException(ConnectionError("refused"))

    with pytest.raises(BackendFailure):
        await mocked_space.knn("docs", "k1", 3)


@pytest.mark.asyncio
async def test_bad_payload_becomes_backend_failure(mocked_space, mock_client):
    mock_client.query_points.return_value = MagicMock(points=[MagicMock(payload={"data": 12})])

    with pytest.raises(BackendFailure):
        await mocked_space.knn("docs", "k1", 3)


@pytest.mark.asyncio
async def test_local_docs_scenario(local_space):
    await local_space.create_namespace("docs")
    assert await local_space.namespace_exists("docs")

    await local_space.add_items("docs", [TextItem(f"k{i}") for i in range(1, 6)])
    assert await local_space.count("docs") == 5

    results = await local_space.knn("docs", "k3", 3)
    assert len(results) == 3
    assert results[0] == TextItem("k3")

    await local_space.delete_item("docs", TextItem("k3"))

    results = await local_space.knn("docs", "k3", 3)
    assert len(results) == 3
    assert TextItem("k3") not in results

    with pytest.raises(KeyNotFound):
        await local_space.delete_item("docs", TextItem("k3"))

    await local_space.delete_namespace("docs")
    assert not await local_space.namespace_exists("docs")


@pytest.mark.asyncio
async def test_local_namespace_collision(local_space):
    await local_space.create_namespace("docs")

    with pytest.raises(KeyCollision):
        await local_space.create_namespace("docs")
