"""Create database schema and seed demo users and skills for development."""
from __future__ import annotations

import asyncio

from skillswap.db.session import SessionLocal, create_schema
from skillswap.models.skill import Skill
from skillswap.models.user import User

USERS = [
	{
		"id": "9a4c1f0e-3f41-4c2b-8d52-1f6f0c1b7a01",
		"email": "ava.khan@campus.example",
		"first_name": "Ava",
		"last_name": "Khan",
	},
	{
		"id": "9a4c1f0e-3f41-4c2b-8d52-1f6f0c1b7a02",
		"email": "daniel.lee@campus.example",
		"first_name": "Daniel",
		"last_name": "Lee",
	},
	{
		"id": "9a4c1f0e-3f41-4c2b-8d52-1f6f0c1b7a03",
		"email": "sofia.rehman@campus.example",
		"first_name": "Sofia",
		"last_name": "Rehman",
	},
]


SKILLS = [
	{
		"id": "5d0b7e2a-8c3e-4e55-a1f4-2b9d6c0e1101",
		"title": "Intro to Python",
		"description": "Variables, loops and writing your first scripts.",
		"user_id": "9a4c1f0e-3f41-4c2b-8d52-1f6f0c1b7a01",
	},
	{
		"id": "5d0b7e2a-8c3e-4e55-a1f4-2b9d6c0e1102",
		"title": "Conversational Spanish",
		"description": "Weekly practice sessions for beginners.",
		"user_id": "9a4c1f0e-3f41-4c2b-8d52-1f6f0c1b7a02",
	},
	{
		"id": "5d0b7e2a-8c3e-4e55-a1f4-2b9d6c0e1103",
		"title": "Guitar basics",
		"description": "Chords, strumming patterns and a first song.",
		"user_id": "9a4c1f0e-3f41-4c2b-8d52-1f6f0c1b7a03",
	},
]


async def seed_users() -> None:
	"""Insert or update demo users."""

	async with SessionLocal() as session:
		async with session.begin():
			for user_data in USERS:
				user = await session.get(User, user_data["id"])
				if user is None:
					session.add(User(**user_data))
				else:
					user.email = user_data["email"]
					user.first_name = user_data["first_name"]
					user.last_name = user_data["last_name"]


async def seed_skills() -> None:
	"""Insert or update demo skills owned by the seeded users."""

	async with SessionLocal() as session:
		async with session.begin():
			for skill_data in SKILLS:
				skill = await session.get(Skill, skill_data["id"])
				if skill is None:
					session.add(Skill(**skill_data))
				else:
					skill.title = skill_data["title"]
					skill.description = skill_data["description"]
					skill.user_id = skill_data["user_id"]


async def main() -> None:
	await create_schema()
	await seed_users()
	await seed_skills()
	print("Database schema ensured and demo data seeded.")


if __name__ == "__main__":
	asyncio.run(main())
