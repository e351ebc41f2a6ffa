"""Email domain - transactional sends through the tenant's SMTP relay"""
