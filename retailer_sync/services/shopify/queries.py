# retailer_sync/services/shopify/queries.py
"""GraphQL documents used by the inventory sync. Only the fields we consume are requested."""

LIST_VARIANT_SKUS = """
query listVariantSkus($first: Int!, $after: String) {
  productVariants(first: $first, after: $after) {
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      cursor
      node {
        sku
      }
    }
  }
}
"""

# Matches one or many SKUs via the search syntax, e.g. `sku:"A" OR sku:"B"`.
VARIANT_STOCK_BY_SKU = """
query variantStockBySku($first: Int!, $after: String, $query: String!) {
  productVariants(first: $first, after: $after, query: $query) {
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      cursor
      node {
        id
        sku
        inventoryItem {
          id
          inventoryLevels(first: 10) {
            edges {
              node {
                id
                location {
                  id
                }
                quantities(names: ["available"]) {
                  name
                  quantity
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

SET_INVENTORY_QUANTITIES = """
mutation inventorySetQuantities($input: InventorySetQuantitiesInput!) {
  inventorySetQuantities(input: $input) {
    inventoryAdjustmentGroup {
      reason
      changes {
        name
        delta
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""
