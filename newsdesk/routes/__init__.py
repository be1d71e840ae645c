# Routes package init
"""
Newsdesk Backend — API Routes Package
=======================================

Route Inventory:
    - media.py:       GET  /uploads/{filename}          (serve / rehydrate an image)
    - blogs.py:       /api/blogs                        (CRUD, /published, /image/{filename})
    - categories.py:  /api/categories                   (CRUD, subcategories, /image/{filename})
    - tags.py:        /api/tags                         (CRUD)
    - upload.py:      POST /api/upload, /api/upload/base64
    - auth.py:        /api/auth                         (register, login, register-admin, me)
    - health.py:      GET  /health, GET /api/test

Routes stay thin: they extract request data, call a service and shape the
response. Business rules live in newsdesk.services.
"""
