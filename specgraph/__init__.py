"""
specgraph - Specification Integrity Engine

Directory Structure:
├── application/       # Use-case services
│   ├── code_allocator.py          # Collision-free artifact codes
│   ├── link_resolver.py           # Diagram call -> API contract links
│   ├── consistency_analyzer.py    # Integrity rule battery
│   └── artifact_service.py        # Artifact lifecycle
├── diagram/           # Sequence diagram (Mermaid subset) parser
├── domain/            # Entities, errors, events, ports, endpoint matching
├── db/                # SQLAlchemy models, repositories and storage façade
├── schemas/           # Pydantic models for the consistency report
└── config.py          # Application configuration

A project is a tree of modules owning use cases, which own sequence
diagrams; API contracts and DTO schemas hang off the project and are tied
to diagrams and to each other through links. The engine keeps those
artifacts coded, linked and consistent.
"""
