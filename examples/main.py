"""FastAPI app exposing the demo meta box schema with the GraphiQL playground.

Run this file to start a local server and open http://127.0.0.1:8000/graphql

Environment variables:
  METABOXQL_DATABASE_URL  optional SQLAlchemy async URL for the meta table,
                          defaults to an in-memory sqlite+aiosqlite database
  DEMO_SEED               set to '0' to skip demo meta seeding (default '1')
  SQL_ECHO                set to '1' to log SQL (default '0')
"""
from __future__ import annotations

import asyncio
import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from strawberry.fastapi import GraphQLRouter

from metaboxql.storage import MetaBase, MetaValue, SqlMetaStore
# Reuse the demo host (entity types, meta boxes, loaders) from the tests
from tests.schema import SEED, Demo

logging.basicConfig(level=logging.INFO)
logging.getLogger("metaboxql").setLevel(logging.DEBUG)

app = FastAPI(title="metaboxql GraphQL Playground")


def _make_engine() -> AsyncEngine:
    echo = os.getenv("SQL_ECHO", "0") != "0"
    url = os.getenv("METABOXQL_DATABASE_URL")
    if url:
        return create_async_engine(url, echo=echo)
    # Shared in-memory DB across connections using StaticPool
    return create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=echo,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


engine = _make_engine()
session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
store = SqlMetaStore(session_factory)
demo = Demo(store=store)


async def _init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(MetaBase.metadata.create_all)
    if os.getenv("DEMO_SEED", "1") == "0":
        return
    async with session_factory() as session:
        if (await session.execute(select(MetaValue.id).limit(1))).first():
            return
    for field_id, entity_id, value, object_type in SEED:
        await store.set(field_id, entity_id, value, {"object_type": object_type})


@app.on_event("startup")
async def on_startup() -> None:
    if sys.platform.startswith("win"):
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    await _init_db()


@app.get("/")
async def root() -> RedirectResponse:
    return RedirectResponse(url="/graphql")


async def get_context(request: Request):
    # one set of loaders per request
    return demo.context()


graphql_router = GraphQLRouter(
    demo.schema,
    graphiql=True,
    context_getter=get_context,
)

app.include_router(graphql_router, prefix="/graphql")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
