from rest_framework import serializers
from django.db import transaction
from saleshostel.inventory.services import record_movement
from .models import Category, Product, ProductUnit, slugify_name


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'image', 'is_active', 'product_count',
                  'created_at', 'updated_at']
        read_only_fields = ['slug', 'created_at', 'updated_at']

    def get_product_count(self, obj):
        # Annotated by list views; counted directly otherwise
        count = getattr(obj, 'active_product_count', None)
        if count is None:
            count = obj.products.filter(is_active=True).count()
        return count

    def validate_name(self, value):
        value = value.strip()
        queryset = Category.objects.filter(name__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Category with this name already exists')
        slug = slugify_name(value)
        if not slug:
            raise serializers.ValidationError('Category name must contain letters or numbers')
        clashes = Category.objects.filter(slug=slug)
        if self.instance:
            clashes = clashes.exclude(pk=self.instance.pk)
        if clashes.exists():
            raise serializers.ValidationError(f'Category name is too similar to an existing category ({slug})')
        return value


class ProductUnitSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(required=False)
    is_low_stock = serializers.BooleanField(read_only=True)
    is_in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = ProductUnit
        fields = ['id', 'unit_type', 'price', 'stock_quantity', 'min_stock_level', 'cost_price',
                  'is_available', 'is_low_stock', 'is_in_stock']


class PublicProductUnitSerializer(ProductUnitSerializer):
    """Storefront view of a unit; cost price stays internal"""

    class Meta(ProductUnitSerializer.Meta):
        fields = ['id', 'unit_type', 'price', 'stock_quantity', 'is_available', 'is_in_stock']


class ProductListSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    category_slug = serializers.CharField(source='category.slug', read_only=True)
    primary_image = serializers.CharField(read_only=True)
    min_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    total_stock = serializers.IntegerField(read_only=True)
    units = PublicProductUnitSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'category', 'category_name', 'category_slug', 'primary_image', 'images',
                  'tags', 'featured', 'is_active', 'min_price', 'total_stock', 'units', 'created_at']


class ProductSerializer(serializers.ModelSerializer):
    """Full product representation with writable nested units"""
    category_name = serializers.CharField(source='category.name', read_only=True)
    category_slug = serializers.CharField(source='category.slug', read_only=True)
    primary_image = serializers.CharField(read_only=True)
    min_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    total_stock = serializers.IntegerField(read_only=True)
    units = ProductUnitSerializer(many=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'category', 'category_name', 'category_slug',
                  'images', 'primary_image', 'tags', 'is_active', 'featured', 'min_price', 'total_stock',
                  'units', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_images(self, value):
        if not isinstance(value, list) or not all(isinstance(url, str) for url in value):
            raise serializers.ValidationError('Images must be a list of URLs')
        return value

    def validate_tags(self, value):
        if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
            raise serializers.ValidationError('Tags must be a list of strings')
        return [tag.strip() for tag in value if tag.strip()]

    def validate_units(self, value):
        if not value:
            raise serializers.ValidationError('At least one unit is required')
        unit_types = [unit['unit_type'] for unit in value]
        if len(unit_types) != len(set(unit_types)):
            raise serializers.ValidationError('Each unit type can only appear once per product')
        return value

    def _create_unit(self, product, unit_data, user):
        """New units start empty; their opening stock goes through the movement ledger"""
        opening_stock = unit_data.pop('stock_quantity', 0) or 0
        unit = ProductUnit.objects.create(product=product, **unit_data)
        if opening_stock > 0:
            record_movement(
                unit, opening_stock, 'purchase',
                performed_by=user,
                reference=f'PRD-{product.id}',
                reference_type='manual',
                reason='Opening stock',
                unit_cost=unit.cost_price,
            )
        return unit

    @transaction.atomic
    def create(self, validated_data):
        units_data = validated_data.pop('units')
        product = Product.objects.create(**validated_data)
        for unit_data in units_data:
            unit_data.pop('id', None)
            self._create_unit(product, unit_data, product.created_by)
        return product

    @transaction.atomic
    def update(self, instance, validated_data):
        units_data = validated_data.pop('units', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()

        if units_data is not None:
            # Units are replaced; existing rows keep their id so history stays linked
            # Stock of existing units only changes through inventory adjustments
            request = self.context.get('request')
            user = request.user if request else None
            existing = {unit.unit_type: unit for unit in instance.units.all()}
            keep_ids = []
            for unit_data in units_data:
                unit_data.pop('id', None)
                unit = existing.get(unit_data['unit_type'])
                if unit:
                    unit_data.pop('stock_quantity', None)
                    for attr, value in unit_data.items():
                        setattr(unit, attr, value)
                    unit.save()
                else:
                    unit = self._create_unit(instance, unit_data, user)
                keep_ids.append(unit.id)
            instance.units.exclude(id__in=keep_ids).delete()
        return instance


class PublicProductSerializer(ProductSerializer):
    units = PublicProductUnitSerializer(many=True, read_only=True)

    class Meta(ProductSerializer.Meta):
        fields = ['id', 'name', 'description', 'category', 'category_name', 'category_slug',
                  'images', 'primary_image', 'tags', 'featured', 'min_price', 'total_stock',
                  'units', 'created_at']
