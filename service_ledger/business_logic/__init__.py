# service_ledger/business_logic/__init__.py
# Managers are imported from their modules; importing them here would make
# every entity import pull in the data access layer as well.
