# Services package init
"""
ALOKA Backend — Services Layer
===============================

Service Inventory:
    - studio_query:   pure predicate/ordering/pagination builders for listings
    - StudioService:  list, create, partial update and soft delete of studios
    - AuthService:    signup, login and bearer-token identity resolution

Services take an AsyncSession and typed payloads and raise AlokaError
subclasses; they never see Request or Response objects.
"""
