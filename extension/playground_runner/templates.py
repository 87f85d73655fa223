"""
Content templates for new playground documents.
"""

from __future__ import annotations

DATABASE_PLACEHOLDER = "CURRENT_DATABASE"
COLLECTION_PLACEHOLDER = "CURRENT_COLLECTION"

PLAYGROUND_TEMPLATE = """//select the database to use.
use('test');
//run a find command.
db.my_collection.find({foo: 'bar'});
//run an aggregation.
const agg = [
  {$match: {foo: 'bar'}}
];
db.my_collection.aggregate(agg);
"""

SEARCH_TEMPLATE = """// The current database to use.
use('CURRENT_DATABASE');

// Search for documents in the current collection.
db.getCollection('CURRENT_COLLECTION')
  .find(
    {
      /*
      * Filter
      * fieldA: value or expression
      */
    },
    {
      /*
      * Projection
      * _id: 0, // exclude _id
      * fieldA: 1 // include field
      */
    }
  )
  .sort({
    /*
    * fieldA: 1 // ascending
    * fieldB: -1 // descending
    */
  });
"""

CREATE_INDEX_TEMPLATE = """// The current database to use.
use('CURRENT_DATABASE');

// Create a new index in the collection.
db.getCollection('CURRENT_COLLECTION')
  .createIndex(
    {
      /*
      * Keys
      * fieldA: 1 // ascending
      * fieldB: -1 // descending
      */
    }, {
      /*
      * Options (https://docs.mongodb.com/manual/reference/method/db.collection.createIndex/#options-for-all-index-types)
      * unique: false
      */
    }
  );
"""


def render_template(template: str, database_name: str, collection_name: str) -> str:
    """Fill the first database and collection placeholder of a template."""
    return template.replace(DATABASE_PLACEHOLDER, database_name, 1).replace(
        COLLECTION_PLACEHOLDER, collection_name, 1
    )
