"""Video catalog data-access layer: query shapes, aggregation and mutations over a document store."""
