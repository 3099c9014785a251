"""Retrieval result models."""
from dataclasses import asdict, dataclass, field
from typing import List, Optional


@dataclass
class RetrievedSnippet:
    """Snippet returned by the vector index."""
    id: str
    score: float  # higher is more similar
    text: str


@dataclass
class KeywordQueryResult:
    """Index results for one extracted keyword, in index order."""
    keyword: str
    snippets: List[RetrievedSnippet] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"keyword": self.keyword, "results": [asdict(s) for s in self.snippets]}


@dataclass
class RetrievedContext:
    """Everything the retriever and synthesizer produced for one request."""
    strategy: str
    keywords: List[str] = field(default_factory=list)
    results: List[KeywordQueryResult] = field(default_factory=list)
    snippets: List[RetrievedSnippet] = field(default_factory=list)
    digest: Optional[str] = None

    def render(self) -> str:
        """Context text handed to the responder."""
        if self.digest is not None:
            return self.digest
        return "\n".join(s.text for s in self.snippets if s.text)
