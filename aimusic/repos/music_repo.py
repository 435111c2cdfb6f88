from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from aimusic.db import get_pool
from aimusic.domain.enums import MusicStatus
from aimusic.domain.models import MusicPage, MusicPageQuery, MusicTask

_COLUMNS = """
  id, task_id, user_id, platform, generate_mode, model, prompt, description_prompt,
  title, lyric, tags, audio_url, video_url, image_url, status, public_status,
  created_at, updated_at
"""


def _row_to_task(row: Any) -> MusicTask:
    r = dict(row)
    return MusicTask(
        id=r["id"],
        task_id=r["task_id"],
        user_id=r.get("user_id"),
        platform=r.get("platform"),
        generate_mode=r.get("generate_mode"),
        model=r.get("model"),
        prompt=r.get("prompt"),
        description_prompt=r.get("description_prompt"),
        title=r.get("title"),
        lyric=r.get("lyric"),
        tags=list(r.get("tags") or []),
        audio_url=r.get("audio_url"),
        video_url=r.get("video_url"),
        image_url=r.get("image_url"),
        status=MusicStatus(r.get("status") or MusicStatus.in_progress.value),
        public_status=bool(r.get("public_status")),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def build_page_filters(query: MusicPageQuery) -> Tuple[str, List[Any]]:
    """
    Build the WHERE clause for MusicRepo.page.

    Returns (sql, params); sql is "" when no filter is set. Placeholders are
    numbered from $1 in the order params are appended.
    """
    clauses: List[str] = []
    params: List[Any] = []

    def add(sql: str, value: Any) -> None:
        params.append(value)
        clauses.append(sql.format(n=len(params)))

    if query.user_id is not None:
        add("user_id = ${n}", query.user_id)
    if query.title:
        add("title ilike '%' || ${n} || '%'", query.title.strip())
    if query.status is not None:
        add("status = ${n}", query.status.value)
    if query.generate_mode is not None:
        add("generate_mode = ${n}", query.generate_mode.value)
    if query.public_status is not None:
        add("public_status = ${n}", query.public_status)
    if query.created_from is not None:
        add("created_at >= ${n}", query.created_from)
    if query.created_to is not None:
        add("created_at <= ${n}", query.created_to)

    if not clauses:
        return "", params
    return "where " + " and ".join(clauses), params


class MusicRepo:
    async def insert_batch(self, tasks: Sequence[MusicTask]) -> List[int]:
        """Insert all rows in one transaction; ids come back in input order."""
        ids: List[int] = []
        pool = await get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                for t in tasks:
                    mid = await conn.fetchval(
                        """
                        insert into ai_music(
                          task_id, user_id, platform, generate_mode, model, prompt,
                          description_prompt, title, lyric, tags,
                          audio_url, video_url, image_url, status, public_status
                        )
                        values($1,$2,$3,$4,$5,$6,$7,$8,$9,$10,$11,$12,$13,$14,$15)
                        returning id
                        """,
                        t.task_id,
                        t.user_id,
                        t.platform,
                        t.generate_mode,
                        t.model,
                        t.prompt,
                        t.description_prompt,
                        t.title,
                        t.lyric,
                        list(t.tags or []),
                        t.audio_url,
                        t.video_url,
                        t.image_url,
                        t.status.value,
                        t.public_status,
                    )
                    ids.append(int(mid))
        return ids

    async def update_batch(self, tasks: Sequence[MusicTask]) -> None:
        """
        Update provider-sourced fields by id.

        Null values never clear a stored field, a new media reference replaces
        the stored one, and success is never downgraded.
        """
        rows = [
            (
                t.id,
                t.model,
                t.prompt,
                t.description_prompt,
                t.title,
                t.lyric,
                list(t.tags) if t.tags else None,
                t.audio_url,
                t.video_url,
                t.image_url,
                t.status.value,
            )
            for t in tasks
            if t.id is not None
        ]
        if not rows:
            return

        pool = await get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany(
                    """
                    update ai_music
                    set model = coalesce($2, model),
                        prompt = coalesce($3, prompt),
                        description_prompt = coalesce($4, description_prompt),
                        title = coalesce($5, title),
                        lyric = coalesce($6, lyric),
                        tags = coalesce($7::text[], tags),
                        audio_url = coalesce($8, audio_url),
                        video_url = coalesce($9, video_url),
                        image_url = coalesce($10, image_url),
                        status = case when status = 'success' then status else $11 end,
                        updated_at = now()
                    where id = $1
                    """,
                    rows,
                )

    async def get(self, music_id: int) -> Optional[MusicTask]:
        pool = await get_pool()
        row = await pool.fetchrow(f"select {_COLUMNS} from ai_music where id=$1", music_id)
        return _row_to_task(row) if row else None

    async def list_by_status(self, status: MusicStatus) -> List[MusicTask]:
        pool = await get_pool()
        rows = await pool.fetch(
            f"select {_COLUMNS} from ai_music where status=$1 order by id asc",
            status.value,
        )
        return [_row_to_task(r) for r in rows]

    async def page(self, query: MusicPageQuery) -> MusicPage:
        where, params = build_page_filters(query)
        n = len(params)

        pool = await get_pool()
        total = await pool.fetchval(f"select count(*) from ai_music {where}", *params)
        if not total:
            return MusicPage(items=[], total=0)

        rows = await pool.fetch(
            f"""
            select {_COLUMNS}
            from ai_music
            {where}
            order by id desc
            limit ${n + 1} offset ${n + 2}
            """,
            *params,
            query.page_size,
            query.offset,
        )
        return MusicPage(items=[_row_to_task(r) for r in rows], total=int(total))

    async def update_public_status(self, music_id: int, public_status: bool) -> None:
        pool = await get_pool()
        await pool.execute(
            "update ai_music set public_status=$2, updated_at=now() where id=$1",
            music_id,
            public_status,
        )

    async def update_title(self, music_id: int, title: str) -> None:
        pool = await get_pool()
        await pool.execute(
            "update ai_music set title=$2, updated_at=now() where id=$1",
            music_id,
            title,
        )

    async def delete(self, music_id: int) -> None:
        pool = await get_pool()
        await pool.execute("delete from ai_music where id=$1", music_id)
