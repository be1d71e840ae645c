# Services package init
"""
Newsdesk Backend — Services Layer
===================================

What:  Business logic between routes (HTTP) and the database / content store.

Service Inventory:
    - image_codec:     data:image/...;base64 payload parsing and encoding
    - content_store:   ContentStore protocol with local-disk and in-memory backends
    - image_fields:    ImageRef preparation, traversal and base64Data stripping
    - media_service:   rehydration of stored files from embedded payloads, serving
    - blog_service / category_service / tag_service: entity CRUD
    - auth_service:    users, password login, JWT issuance
    - upload_service:  standalone multipart and embedded uploads
    - image_backfill:  embeds payloads into documents that only reference a file
    - pagination:      page/limit request and response envelope
"""
