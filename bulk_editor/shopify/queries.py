"""
GraphQL query strings for Shopify Admin API.
"""


# Everything the field editors read, for one product
PRODUCT_SNAPSHOT_QUERY = '''
query productSnapshot($id: ID!) {
  product(id: $id) {
    id
    title
    descriptionHtml
    vendor
    productType
    status
    tags
    category {
      id
      fullName
    }
    variants(first: 250) {
      edges {
        node {
          id
          title
          price
          compareAtPrice
          sku
          barcode
          inventoryItem {
            id
            tracked
            requiresShipping
            unitCost {
              amount
              currencyCode
            }
            measurement {
              weight {
                value
                unit
              }
            }
          }
        }
      }
    }
  }
}
'''

# Paginated product search for the filter endpoint
PRODUCT_SEARCH_QUERY = '''
query productSearch($first: Int!, $after: String, $query: String) {
  products(first: $first, after: $after, query: $query) {
    edges {
      node {
        id
        title
        descriptionHtml
        vendor
        productType
        status
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
'''
