#!/usr/bin/env python3
"""
Spine - Basic Usage Example

Creates, fetches, updates and deletes an article on a JSON:API service.

Usage:
    export SPINE_ENDPOINT=http://localhost:5000
    python basic_usage.py
"""

from dataclasses import dataclass
from typing import ClassVar, Optional

from spine import (
    DomainError,
    Query,
    Resource,
    SpineClient,
    ToMany,
    ToOne,
    TransportError,
    attribute,
    to_many,
    to_one,
)


@dataclass(eq=False)
class Person(Resource):
    resource_type: ClassVar[str] = "people"

    name: Optional[str] = None


@dataclass(eq=False)
class Comment(Resource):
    resource_type: ClassVar[str] = "comments"

    body: Optional[str] = None


@dataclass(eq=False)
class Article(Resource):
    resource_type: ClassVar[str] = "articles"

    title: Optional[str] = None
    published_at: Optional[str] = attribute(key="published-at")
    author: ToOne = to_one("people")
    comments: ToMany = to_many("comments")


def main():
    with SpineClient.from_env() as client:
        for resource_class in (Person, Comment, Article):
            client.register_type(resource_class)

        # 1. Related resources are saved first
        print("1. Creating author...")
        author = client.save(Person(name="Ward"))
        print(f"   Author ID: {author.id}")

        # 2. Create an article linked to the author
        print("\n2. Creating article...")
        article = Article(title="Hello, Spine")
        article.author.set(author)
        try:
            client.save(article)
        except DomainError as e:
            print(f"   Rejected ({e.status_code}): {e.message}")
            return
        except TransportError as e:
            print(f"   Server unreachable: {e.message}")
            return
        print(f"   Article ID: {article.id}")

        # 3. Fetch it back with the author sideloaded
        print("\n3. Fetching articles...")
        query = Query.for_type(Article, [article.id]).including("author")
        for fetched in client.fetch_for_query(query):
            author_name = fetched.author.resource.name if fetched.author.resource else "?"
            print(f"   {fetched.title} by {author_name}")

        # 4. Follow a relationship
        print("\n4. Fetching comments...")
        comments = client.fetch_related("comments", article)
        print(f"   {len(comments)} comment(s)")

        # 5. Update and delete
        print("\n5. Updating and deleting...")
        article.title = "Hello again"
        client.save(article)
        client.delete(article)
        print("   Done")


if __name__ == "__main__":
    main()
