"""
Static Site Example - Build a stack from recipes and keep its state locally.

Opens a local state store, appends two recipes to a chef and deploys them.
Set CP_STATE_BACKEND=s3 (plus AWS credentials) to keep the state in S3.
"""

from cloudprism import Chef, Recipe, get_state_store
from cloudprism.ingredients import CommandIngredient, FileIngredient

store = get_state_store()
store.open()

index = FileIngredient(
    name="index",
    path="scratch/site/index.html",
    content="<h1>Hello from CloudPrism</h1>\n",
)
robots = FileIngredient(
    name="robots",
    path="scratch/site/robots.txt",
    content="User-agent: *\nDisallow:\n",
)

# Runs once both files exist
listing = CommandIngredient(
    name="listing",
    create="ls -l scratch/site > scratch/site/listing.txt",
    delete="rm -f scratch/site/listing.txt",
).after(index, robots)

chef = Chef("static-site", store)
chef.append(
    Recipe("content", index, robots),
    Recipe("reports", listing),
)

if __name__ == "__main__":
    print(chef.preview())
    print(chef.up())
    store.close()
