"""CRM sales analytics: CSV data store, query engine, dashboard projections and chat agent."""
