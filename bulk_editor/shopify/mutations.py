"""
GraphQL mutation strings for Shopify Admin API.
"""


# Product-level fields (title, descriptionHtml, vendor, productType, status, tags, category)
PRODUCT_UPDATE = '''
mutation productUpdate($input: ProductInput!) {
  productUpdate(input: $input) {
    product {
      id
    }
    userErrors {
      field
      message
    }
  }
}
'''

# Variant-level fields (price, compareAtPrice, barcode, inventoryItem)
PRODUCT_VARIANTS_BULK_UPDATE = '''
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    productVariants {
      id
    }
    userErrors {
      field
      message
    }
  }
}
'''

# Inventory item fields (cost, tracked, requiresShipping)
INVENTORY_ITEM_UPDATE = '''
mutation inventoryItemUpdate($id: ID!, $input: InventoryItemInput!) {
  inventoryItemUpdate(id: $id, input: $input) {
    inventoryItem {
      id
    }
    userErrors {
      field
      message
    }
  }
}
'''
